"""
In-memory vector index for exact cosine similarity search.

Chunks are kept in insertion order next to a dense embedding matrix.
Every mutation builds a new immutable snapshot and swaps it in under a
writer lock, so searches read one consistent snapshot without locking.
"""

import logging
import math
import threading
from collections.abc import Iterable
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from docqa.exceptions import IndexInvariantError
from docqa.retrieval.chunker import Chunk

logger = logging.getLogger(__name__)


def cosine_similarity(a: NDArray[np.floating], b: NDArray[np.floating]) -> float:
    """
    Cosine similarity between two vectors.

    Returns ``-inf`` when either vector has zero norm, so degenerate
    vectors rank below every real match instead of producing NaN.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    norm_product = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm_product == 0.0 or not math.isfinite(norm_product):
        return -math.inf
    return float(np.dot(a, b) / norm_product)


class _Snapshot(NamedTuple):
    chunks: tuple[Chunk, ...]
    # (len(chunks), dimension), row i is chunks[i].embedding
    matrix: NDArray[np.float64]
    norms: NDArray[np.float64]


class VectorIndex:
    """
    Linear-scan vector index over document chunks.

    The embedding dimension is fixed either at construction or by the
    first successful add, and every later chunk must match it.

    Example:
        >>> index = VectorIndex(dimension=1536)
        >>> index.add(chunks)
        >>> results = index.search(query_embedding, k=3)
        >>> index.remove_by_document_id("doc-1")
    """

    def __init__(self, dimension: int | None = None) -> None:
        """
        Initialize an empty index.

        Args:
            dimension: Vector dimension, or None to take it from the first add
        """
        if dimension is not None and dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        self._dimension = dimension
        self._lock = threading.Lock()
        self._snapshot = self._build_snapshot(())

    @property
    def dimension(self) -> int | None:
        """Established embedding dimension."""
        return self._dimension

    @property
    def size(self) -> int:
        """Number of chunks in the index."""
        return len(self._snapshot.chunks)

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        """All chunks in insertion order."""
        return self._snapshot.chunks

    def document_ids(self) -> list[str]:
        """Distinct document ids in first-insertion order."""
        return list(dict.fromkeys(chunk.document_id for chunk in self._snapshot.chunks))

    def chunks_for(self, document_id: str) -> list[Chunk]:
        """Chunks belonging to one document, in insertion order."""
        return [c for c in self._snapshot.chunks if c.document_id == document_id]

    def add(self, chunks: Iterable[Chunk]) -> None:
        """
        Append chunks to the index.

        The batch is validated as a whole before anything is stored.

        Args:
            chunks: Chunks with 1-D, finite embeddings

        Raises:
            IndexInvariantError: If any embedding has the wrong shape or dimension
        """
        new_chunks = tuple(chunks)
        if not new_chunks:
            return

        with self._lock:
            dimension = self._validate(new_chunks)
            self._snapshot = self._append_to_snapshot(self._snapshot, new_chunks)
            self._dimension = dimension

        logger.debug(f"Added {len(new_chunks)} chunks (index size {self.size})")

    def replace_document(self, document_id: str, chunks: Iterable[Chunk]) -> int:
        """
        Swap a document's chunks for a new set in one step.

        Searches observe either the old set or the new one, never a mix.

        Args:
            document_id: Document whose chunks are replaced
            chunks: New chunks, all belonging to ``document_id``

        Returns:
            Number of old chunks removed

        Raises:
            IndexInvariantError: If validation fails (index left unchanged)
        """
        new_chunks = tuple(chunks)
        stray = [c.id for c in new_chunks if c.document_id != document_id]
        if stray:
            raise IndexInvariantError(
                f"Chunks {stray} do not belong to document {document_id}"
            )

        with self._lock:
            kept = tuple(
                c for c in self._snapshot.chunks if c.document_id != document_id
            )
            removed = len(self._snapshot.chunks) - len(kept)
            dimension = self._validate(new_chunks) if new_chunks else self._dimension
            self._snapshot = self._build_snapshot(kept + new_chunks)
            self._dimension = dimension

        logger.debug(
            f"Replaced {removed} chunks of {document_id} with {len(new_chunks)}"
        )
        return removed

    def remove_by_document_id(self, document_id: str) -> int:
        """
        Remove every chunk that belongs to a document.

        Args:
            document_id: Owning document id

        Returns:
            Number of chunks removed (0 if none matched)
        """
        with self._lock:
            kept = tuple(
                c for c in self._snapshot.chunks if c.document_id != document_id
            )
            removed = len(self._snapshot.chunks) - len(kept)
            if removed:
                self._snapshot = self._build_snapshot(kept)

        if removed:
            logger.debug(f"Removed {removed} chunks of document {document_id}")
        return removed

    def clear(self) -> None:
        """Remove all chunks. The established dimension is kept."""
        with self._lock:
            self._snapshot = self._build_snapshot(())

    def search(
        self,
        query_embedding: NDArray[np.floating],
        k: int = 3,
    ) -> list[tuple[Chunk, float]]:
        """
        Search for the chunks most similar to a query vector.

        Args:
            query_embedding: Query vector of shape (dimension,)
            k: Maximum number of results

        Returns:
            List of (chunk, cosine_similarity) tuples, best first. Ties keep
            insertion order; zero-norm vectors score ``-inf`` and sort last.

        Raises:
            IndexInvariantError: If the query dimension does not match the index
        """
        snapshot = self._snapshot
        if k <= 0 or not snapshot.chunks:
            return []

        query = np.asarray(query_embedding, dtype=np.float64)
        if query.ndim != 1 or query.shape[0] != snapshot.matrix.shape[1]:
            raise IndexInvariantError(
                f"Query must have dimension {snapshot.matrix.shape[1]}, "
                f"got shape {query.shape}"
            )

        scores = self._cosine_scores(snapshot, query)
        # Stable sort on the negated scores keeps insertion order for ties
        order = np.argsort(-scores, kind="stable")[:k]

        return [(snapshot.chunks[i], float(scores[i])) for i in order]

    @staticmethod
    def _cosine_scores(snapshot: _Snapshot, query: NDArray[np.float64]) -> NDArray[np.float64]:
        """Cosine similarity of the query against every row, ``-inf`` where undefined."""
        denominators = snapshot.norms * np.linalg.norm(query)
        scores = np.full(len(snapshot.chunks), -np.inf, dtype=np.float64)
        valid = denominators > 0
        if np.any(valid):
            dots = snapshot.matrix[valid] @ query
            scores[valid] = dots / denominators[valid]
        # Guard against overflow in very large vectors
        scores[~np.isfinite(scores)] = -np.inf
        return scores

    def _validate(self, chunks: tuple[Chunk, ...]) -> int:
        """
        Check that a batch can join the index.

        Returns:
            The dimension the index will have after the batch is stored

        Raises:
            IndexInvariantError: On the first offending chunk
        """
        dimension = self._dimension
        for chunk in chunks:
            embedding = np.asarray(chunk.embedding)
            if embedding.ndim != 1 or embedding.shape[0] == 0:
                raise IndexInvariantError(
                    f"Chunk {chunk.id} embedding must be a non-empty 1-D vector, "
                    f"got shape {embedding.shape}"
                )
            if dimension is None:
                dimension = embedding.shape[0]
            if embedding.shape[0] != dimension:
                raise IndexInvariantError(
                    f"Chunk {chunk.id} embedding has dimension {embedding.shape[0]}, "
                    f"index dimension is {dimension}"
                )
            if not np.all(np.isfinite(embedding)):
                raise IndexInvariantError(
                    f"Chunk {chunk.id} embedding contains non-finite values"
                )
        return dimension

    def _build_snapshot(self, chunks: tuple[Chunk, ...]) -> _Snapshot:
        if chunks:
            matrix = _stack_embeddings(chunks)
        else:
            matrix = np.empty((0, self._dimension or 0), dtype=np.float64)
        return _Snapshot(chunks, matrix, np.linalg.norm(matrix, axis=1))

    @staticmethod
    def _append_to_snapshot(snapshot: _Snapshot, chunks: tuple[Chunk, ...]) -> _Snapshot:
        """Extend a snapshot without re-stacking the rows it already holds."""
        rows = _stack_embeddings(chunks)
        norms = np.linalg.norm(rows, axis=1)
        if not snapshot.chunks:
            return _Snapshot(chunks, rows, norms)
        return _Snapshot(
            snapshot.chunks + chunks,
            np.concatenate([snapshot.matrix, rows]),
            np.concatenate([snapshot.norms, norms]),
        )


def _stack_embeddings(chunks: tuple[Chunk, ...]) -> NDArray[np.float64]:
    return np.vstack([np.asarray(c.embedding, dtype=np.float64) for c in chunks])
