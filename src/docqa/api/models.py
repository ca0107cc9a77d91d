"""
Pydantic models for API request and response schemas.

These models provide automatic validation and OpenAPI documentation.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class DocumentUploadRequest(BaseModel):
    """Request schema for the POST /documents endpoint."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name of the document (listed under Sources)",
        examples=["employee-handbook.txt"],
    )
    content: str = Field(
        ...,
        description="Decoded text content of the document",
    )
    id: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=128,
        description="Caller-assigned id; generated when omitted",
    )
    content_type: str = Field(
        default="text/plain",
        description="MIME type of the original upload",
    )


class DocumentSchema(BaseModel):
    """Schema for a registered document and its lifecycle state."""

    id: str = Field(description="Document id")
    name: str = Field(description="Document display name")
    content_type: str = Field(description="MIME type of the original upload")
    state: Literal["uploaded", "processing", "indexed", "failed"] = Field(
        description="Lifecycle state",
    )
    chunk_count: int = Field(description="Number of chunks in the index")
    error: Optional[str] = Field(
        default=None,
        description="Ingestion error for failed documents",
    )
    uploaded_at: datetime = Field(description="Upload time (UTC)")


class DocumentListResponse(BaseModel):
    """Response schema for the GET /documents endpoint."""

    documents: list[DocumentSchema] = Field(default_factory=list)
    total_chunks: int = Field(description="Chunks currently in the index")


class QueryRequest(BaseModel):
    """Request schema for the /query endpoint."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        description="Natural language question about the uploaded documents",
        examples=["What is the notice period in the contract?"],
    )
    top_k: Optional[int] = Field(
        default=None,
        ge=1,
        le=50,
        description="Number of chunks used to ground the answer",
    )


class RetrievedChunkSchema(BaseModel):
    """Schema for a chunk that grounded the answer."""

    chunk_id: str
    document_id: str
    document_name: str
    similarity: Optional[float] = Field(
        description="Cosine similarity to the question (null for degenerate vectors)",
    )
    preview: str = Field(default="", description="First characters of the chunk")


class QueryResponse(BaseModel):
    """Response schema for the /query endpoint."""

    answer: str = Field(
        description="Answer with a trailing Sources line, or a fallback message",
    )
    status: Literal[
        "answered", "no_documents", "query_failed", "no_results", "generation_failed"
    ] = Field(description="Pipeline stage that produced the answer")
    sources: list[str] = Field(
        default_factory=list,
        description="Unique document names backing the answer",
    )
    chunks: list[RetrievedChunkSchema] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response schema for the /health endpoint."""

    status: str = Field(
        description="Health status",
        examples=["healthy", "degraded"],
    )
    version: str = Field(description="API version")
    documents: int = Field(description="Registered documents")
    chunks: int = Field(description="Chunks in the index")
    embedder_configured: bool = Field(description="Whether an API key is configured")


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    error: str = Field(
        description="Error code",
        examples=["not_found", "internal_error"],
    )
    message: str = Field(description="Human-readable error message")
