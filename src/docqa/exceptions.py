"""
Error taxonomy for the ingestion and query pipelines.

Every failure is caught at the document- or query-processing boundary:
ingestion errors mark a single document as failed, query errors turn into
a fixed user-visible message. None of them may leave the vector index
partially mutated.
"""


class DocQAError(Exception):
    """Base class for docqa errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class EmbeddingError(DocQAError):
    """Raised when the embedding service call fails or returns unusable data."""


class GenerationError(DocQAError):
    """Raised when the answer generation call fails or times out."""


class IndexInvariantError(DocQAError):
    """Raised when an index operation would mix embedding dimensions."""


class QueryEmbeddingError(DocQAError):
    """Raised when the query text could not be embedded."""


class IngestionError(DocQAError):
    """Raised when a document's chunks could not be embedded or indexed."""

    def __init__(self, message: str, document_id: str | None = None):
        self.document_id = document_id
        super().__init__(message)
