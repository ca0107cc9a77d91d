"""
Retrieval orchestrator: the ingestion and query pipelines.

Ingestion:  split -> embed (one batched call) -> build chunks -> index swap
Query:      embed -> search(k) -> assemble context -> generate -> add sources

Each query stage is awaited in turn, so cancelling the calling task stops
the pipeline at the next stage boundary. Failures never escape a query;
they turn into one of the fixed messages below.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Optional

import numpy as np
from numpy.typing import NDArray

from docqa.config import settings
from docqa.exceptions import (
    EmbeddingError,
    GenerationError,
    IndexInvariantError,
    IngestionError,
    QueryEmbeddingError,
)
from docqa.retrieval.chunker import Chunk, make_chunk_id, split_text

if TYPE_CHECKING:
    from docqa.llm.factory import GenerationProtocol
    from docqa.pipeline.models import Document
    from docqa.retrieval.embeddings import OpenAIEmbedder
    from docqa.retrieval.indexer import VectorIndex

logger = logging.getLogger(__name__)


NO_DOCUMENTS_MESSAGE = (
    "Please upload some documents first so I can help answer your questions "
    "based on their content."
)
QUERY_EMBEDDING_FAILED_MESSAGE = "I couldn't process your question. Please try again."
NO_RELEVANT_INFORMATION_MESSAGE = (
    "I couldn't find relevant information in your documents to answer that question."
)
GENERATION_FAILED_MESSAGE = (
    "I'm having trouble processing your question right now. Please try again."
)

SYSTEM_PROMPT = """You are an assistant for question-answering tasks. Use the following pieces of retrieved context to answer the question. If you don't know the answer based on the context, just say that you don't know. Use three sentences maximum and keep the answer concise.

Context:
{context}"""

CONTEXT_SEPARATOR = "\n\n---\n\n"

QueryStatus = Literal[
    "answered", "no_documents", "query_failed", "no_results", "generation_failed"
]


@dataclass
class QueryAnswer:
    """Outcome of one query, before it is flattened to a single string."""

    message: str
    """The user-visible reply (answer plus sources, or a fixed fallback)."""

    status: QueryStatus
    """Which pipeline stage produced the reply."""

    sources: list[str] = field(default_factory=list)
    """Unique document names backing the answer, in rank order."""

    retrieved: list[tuple[Chunk, float]] = field(default_factory=list)
    """Retrieved chunks with their cosine similarity, best first."""


def build_context(chunks: list[Chunk]) -> str:
    """Join chunk texts in rank order, most relevant first."""
    return CONTEXT_SEPARATOR.join(chunk.text for chunk in chunks)


def unique_sources(chunks: list[Chunk]) -> list[str]:
    """Document names in first-seen order, without duplicates."""
    return list(dict.fromkeys(chunk.document_name for chunk in chunks))


def format_answer(answer: str, sources: list[str]) -> str:
    return f"{answer}\n\nSources: {', '.join(sources)}"


class RetrievalOrchestrator:
    """
    Coordinates splitting, embedding, indexing and answer generation.

    Example:
        >>> orchestrator = RetrievalOrchestrator(embedder, llm, index)
        >>> await orchestrator.ingest_document(document)
        >>> print(await orchestrator.answer_query("What is the notice period?"))
    """

    def __init__(
        self,
        embedder: "OpenAIEmbedder",
        llm: "GenerationProtocol",
        index: "VectorIndex",
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        top_k: Optional[int] = None,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self.embedder = embedder
        self.llm = llm
        self.index = index
        self.chunk_size = chunk_size if chunk_size is not None else settings.chunk_size
        self.chunk_overlap = (
            chunk_overlap if chunk_overlap is not None else settings.chunk_overlap
        )
        self.top_k = top_k if top_k is not None else settings.retrieval_top_k
        self.max_output_tokens = (
            max_output_tokens if max_output_tokens is not None else settings.llm_max_tokens
        )
        self.temperature = (
            temperature if temperature is not None else settings.llm_temperature
        )

        for name in ("chunk_size", "top_k", "max_output_tokens"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must be non-negative, got {self.chunk_overlap}")

        # Reject a non-terminating splitter configuration up front
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than "
                f"chunk_size ({self.chunk_size})"
            )

    # ==========================================================================
    # Ingestion
    # ==========================================================================
    async def ingest_document(self, document: "Document") -> list[Chunk]:
        """
        Split, embed and index one document.

        The document's chunks become searchable all at once. Any earlier
        generation of chunks for the same id is replaced in the same step.

        Args:
            document: Document to ingest

        Returns:
            The chunks now in the index for this document

        Raises:
            IngestionError: If embedding or index validation fails. The
                document then has no chunks in the index.
        """
        texts = split_text(document.raw_content, self.chunk_size, self.chunk_overlap)
        logger.info(f"Split {document.name} into {len(texts)} chunks")

        try:
            embeddings = await self._embed_chunks(texts)
            chunks = [
                Chunk(
                    id=make_chunk_id(document.id, i),
                    document_id=document.id,
                    document_name=document.name,
                    text=text,
                    embedding=embedding,
                    sequence_index=i,
                )
                for i, (text, embedding) in enumerate(zip(texts, embeddings))
            ]
            self.index.replace_document(document.id, chunks)

        except (EmbeddingError, IndexInvariantError) as e:
            self.index.remove_by_document_id(document.id)
            raise IngestionError(
                f"Failed to ingest {document.name}: {e.message}",
                document_id=document.id,
            ) from e

        logger.info(f"Indexed {len(chunks)} chunks for document: {document.name}")
        return chunks

    async def _embed_chunks(self, texts: list[str]) -> NDArray[np.float32]:
        if not texts:
            return np.empty((0, self.index.dimension or 0), dtype=np.float32)

        embeddings = await self.embedder.aembed_texts(texts)
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Expected {len(texts)} embeddings, got {len(embeddings)}"
            )
        return embeddings

    # ==========================================================================
    # Query
    # ==========================================================================
    async def retrieve(self, query: str, k: Optional[int] = None) -> list[tuple[Chunk, float]]:
        """
        Embed a query and return the top-k chunks.

        Raises:
            QueryEmbeddingError: If the query could not be embedded
        """
        query_embedding = await self._embed_query(query)
        return self.index.search(query_embedding, k if k is not None else self.top_k)

    async def _embed_query(self, query: str) -> NDArray[np.float32]:
        try:
            query_embedding = np.asarray(await self.embedder.aembed_query(query))
        except EmbeddingError as e:
            raise QueryEmbeddingError(f"Could not embed query: {e.message}") from e

        dimension = self.index.dimension
        if query_embedding.ndim != 1 or (
            dimension is not None and query_embedding.shape[0] != dimension
        ):
            raise QueryEmbeddingError(
                f"Query embedding has shape {query_embedding.shape}, "
                f"index dimension is {dimension}"
            )
        return query_embedding

    async def answer(self, query: str, k: Optional[int] = None) -> QueryAnswer:
        """
        Run the full query pipeline and report which stage answered.

        Args:
            query: Natural-language question
            k: Number of chunks to ground the answer (default top_k)

        Returns:
            QueryAnswer whose ``message`` is the user-visible reply
        """
        if self.index.is_empty:
            logger.info("Query received before any document was indexed")
            return QueryAnswer(message=NO_DOCUMENTS_MESSAGE, status="no_documents")

        try:
            retrieved = await self.retrieve(query, k)
        except QueryEmbeddingError as e:
            logger.warning(f"Query embedding failed: {e.message}")
            return QueryAnswer(
                message=QUERY_EMBEDDING_FAILED_MESSAGE, status="query_failed"
            )

        logger.info(f"Retrieved {len(retrieved)} chunks for query")
        if not retrieved:
            return QueryAnswer(
                message=NO_RELEVANT_INFORMATION_MESSAGE, status="no_results"
            )

        chunks = [chunk for chunk, _ in retrieved]
        context = build_context(chunks)
        logger.debug(f"Context length: {len(context)}")

        try:
            answer = await self.llm.acomplete(
                system_prompt=SYSTEM_PROMPT.format(context=context),
                user_prompt=query,
                max_tokens=self.max_output_tokens,
                temperature=self.temperature,
            )
        except GenerationError as e:
            logger.error(f"Answer generation failed: {e.message}")
            return QueryAnswer(
                message=GENERATION_FAILED_MESSAGE,
                status="generation_failed",
                retrieved=retrieved,
            )

        sources = unique_sources(chunks)
        return QueryAnswer(
            message=format_answer(answer, sources),
            status="answered",
            sources=sources,
            retrieved=retrieved,
        )

    async def answer_query(self, query: str, k: Optional[int] = None) -> str:
        """
        Answer a question from the indexed documents.

        Returns:
            ``"<answer>\\n\\nSources: <name>, ..."`` or one of the fixed
            fallback messages
        """
        result = await self.answer(query, k)
        return result.message
