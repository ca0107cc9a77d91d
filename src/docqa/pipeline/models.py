"""
Documents and their lifecycle inside the registry.

A Document never changes once created. Its lifecycle state lives in the
registry entry that wraps it:

    uploaded -> processing -> indexed
                           -> failed   (zero chunks in the index)
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

DocumentState = Literal["uploaded", "processing", "indexed", "failed"]


@dataclass(frozen=True)
class Document:
    """An uploaded document with already-decoded text content."""

    id: str
    """Unique identifier, caller-assigned or generated."""

    name: str
    """Display name (usually the file name), listed under Sources."""

    raw_content: str
    """Decoded text content."""

    content_type: str = "text/plain"
    """MIME type reported at upload time (informational only)."""

    @classmethod
    def create(
        cls,
        name: str,
        raw_content: str,
        document_id: Optional[str] = None,
        content_type: str = "text/plain",
    ) -> "Document":
        """Create a document, generating an id when none is supplied."""
        return cls(
            id=document_id or uuid.uuid4().hex,
            name=name,
            raw_content=raw_content,
            content_type=content_type,
        )


@dataclass
class RegistryEntry:
    """Registry record tracking one document's lifecycle."""

    document: Document
    state: DocumentState = "uploaded"
    chunk_count: int = 0
    error: Optional[str] = None
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def document_id(self) -> str:
        return self.document.id
