"""
Document registry: tracks uploaded documents and their lifecycle state.

Uploading registers the document, ingests it, and records the outcome.
Removing a document also removes its chunks from the vector index.
There is no in-place update; remove and re-upload instead.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Optional

from docqa.exceptions import IngestionError
from docqa.pipeline.models import Document, RegistryEntry

if TYPE_CHECKING:
    from docqa.pipeline.orchestrator import RetrievalOrchestrator

logger = logging.getLogger(__name__)


class DocumentRegistry:
    """
    In-memory registry of documents keyed by id.

    Example:
        >>> registry = DocumentRegistry(orchestrator)
        >>> entry = await registry.upload(Document.create("notes.txt", text))
        >>> entry.state
        'indexed'
        >>> registry.remove(entry.document_id)
        True
    """

    def __init__(
        self,
        orchestrator: "RetrievalOrchestrator",
        max_concurrent_ingestions: int = 1,
    ) -> None:
        """
        Initialize the registry.

        Args:
            orchestrator: Pipeline used to ingest documents
            max_concurrent_ingestions: Documents ingested at once by upload_many
        """
        if max_concurrent_ingestions < 1:
            raise ValueError(
                f"max_concurrent_ingestions must be at least 1, got {max_concurrent_ingestions}"
            )
        self.orchestrator = orchestrator
        self.max_concurrent_ingestions = max_concurrent_ingestions
        self._entries: dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._entries

    def get(self, document_id: str) -> Optional[RegistryEntry]:
        return self._entries.get(document_id)

    def list_entries(self) -> list[RegistryEntry]:
        """All entries in upload order."""
        return list(self._entries.values())

    async def upload(self, document: Document) -> RegistryEntry:
        """
        Register a document and ingest it.

        Ingestion failures are recorded on the entry rather than raised, so
        one bad document never affects the others.

        Args:
            document: Document to register

        Returns:
            The entry, in state "indexed" or "failed"
        """
        entry = RegistryEntry(document=document)
        self._entries[document.id] = entry
        logger.info(f"Processing document: {document.name} ({document.id})")

        entry.state = "processing"
        try:
            chunks = await self.orchestrator.ingest_document(document)

        except IngestionError as e:
            self._mark_failed(entry, e.message)
            logger.error(f"Ingestion failed for {document.name}: {e.message}")

        except asyncio.CancelledError:
            self._mark_failed(entry, "Ingestion was cancelled")
            raise

        except Exception as e:
            self._mark_failed(entry, f"Unexpected error: {e!s}")
            logger.exception(f"Unexpected error while ingesting {document.name}")

        else:
            if self._entries.get(document.id) is not entry:
                self._discard_superseded(entry)
                return entry

            entry.state = "indexed"
            entry.chunk_count = len(chunks)
            entry.error = None

        return entry

    async def upload_many(self, documents: Iterable[Document]) -> list[RegistryEntry]:
        """
        Upload a batch of documents.

        Documents are ingested one at a time unless
        ``max_concurrent_ingestions`` allows more. Each document's index
        update stays atomic either way.

        Returns:
            Entries in the same order as ``documents``
        """
        documents = list(documents)
        if self.max_concurrent_ingestions == 1:
            return [await self.upload(document) for document in documents]

        semaphore = asyncio.Semaphore(self.max_concurrent_ingestions)

        async def _bounded_upload(document: Document) -> RegistryEntry:
            async with semaphore:
                return await self.upload(document)

        return list(await asyncio.gather(*(_bounded_upload(d) for d in documents)))

    def remove(self, document_id: str) -> bool:
        """
        Remove a document and all of its chunks.

        Returns:
            True if the document was registered, False otherwise
        """
        entry = self._entries.pop(document_id, None)
        removed_chunks = self.orchestrator.index.remove_by_document_id(document_id)

        if entry is None:
            return False

        logger.info(
            f"Removed document {entry.document.name} ({document_id}) "
            f"and {removed_chunks} chunks"
        )
        return True

    def _discard_superseded(self, entry: RegistryEntry) -> None:
        """Handle an ingestion that finished after its entry was removed or replaced."""
        document = entry.document
        current = self._entries.get(document.id)
        if current is None:
            # Removed mid-ingestion: its chunks must not outlive the entry
            self.orchestrator.index.remove_by_document_id(document.id)
            reason = "Document was removed during ingestion"
        else:
            reason = "Document was replaced by a newer upload"

        entry.state = "failed"
        entry.chunk_count = 0
        entry.error = reason
        logger.warning(f"Discarded ingestion of {document.name} ({document.id}): {reason}")

    def _mark_failed(self, entry: RegistryEntry, error: str) -> None:
        # Failed documents must not keep chunks from an earlier ingestion
        self.orchestrator.index.remove_by_document_id(entry.document_id)
        entry.state = "failed"
        entry.chunk_count = 0
        entry.error = error
