"""
FastAPI application for the docqa REST API.

Run with:
    uvicorn docqa.api.main:app --reload

Or use the CLI:
    docqa serve
"""

import logging
import math
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Response, status
from fastapi.middleware.cors import CORSMiddleware

from docqa import __version__
from docqa.api.models import (
    DocumentListResponse,
    DocumentSchema,
    DocumentUploadRequest,
    ErrorResponse,
    HealthResponse,
    QueryRequest,
    QueryResponse,
    RetrievedChunkSchema,
)
from docqa.config import settings
from docqa.logging_config import configure_logging
from docqa.pipeline.models import Document, RegistryEntry
from docqa.pipeline.registry import DocumentRegistry
from docqa.retrieval.resources import get_registry, initialize_resources

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Configure logging
        - Create the vector index, clients and registry (cached)

    Shutdown:
        - The in-memory index is discarded with the process
    """
    configure_logging(settings.log_level)
    logger.info("Initializing docqa resources...")

    status_map = initialize_resources()
    logger.info(f"Resource initialization status: {status_map}")
    if not status_map["embedder"]:
        logger.warning("No API key configured; uploads and queries will fail gracefully")

    yield

    logger.info("Shutting down docqa...")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="docqa",
        description="Question answering grounded in uploaded documents",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


router = APIRouter()


def _to_schema(entry: RegistryEntry) -> DocumentSchema:
    return DocumentSchema(
        id=entry.document.id,
        name=entry.document.name,
        content_type=entry.document.content_type,
        state=entry.state,
        chunk_count=entry.chunk_count,
        error=entry.error,
        uploaded_at=entry.uploaded_at,
    )


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(
    registry: DocumentRegistry = Depends(get_registry),
) -> HealthResponse:
    """
    Health check endpoint for liveness/readiness probes.

    Returns:
        Health status and index counters
    """
    embedder_configured = getattr(registry.orchestrator.embedder, "api_key", None) is not None

    return HealthResponse(
        status="healthy" if embedder_configured else "degraded",
        version=__version__,
        documents=len(registry),
        chunks=registry.orchestrator.index.size,
        embedder_configured=embedder_configured,
    )


@router.get("/documents", response_model=DocumentListResponse, tags=["Documents"])
async def list_documents(
    registry: DocumentRegistry = Depends(get_registry),
) -> DocumentListResponse:
    """List registered documents with their lifecycle state."""
    return DocumentListResponse(
        documents=[_to_schema(entry) for entry in registry.list_entries()],
        total_chunks=registry.orchestrator.index.size,
    )


@router.post(
    "/documents",
    response_model=DocumentSchema,
    status_code=status.HTTP_201_CREATED,
    tags=["Documents"],
)
async def upload_document(
    request: DocumentUploadRequest,
    registry: DocumentRegistry = Depends(get_registry),
) -> DocumentSchema:
    """
    Upload and index a text document.

    Ingestion failures do not fail the request: the returned document
    has state "failed" and an error message.
    """
    document = Document.create(
        name=request.name,
        raw_content=request.content,
        document_id=request.id,
        content_type=request.content_type,
    )
    entry = await registry.upload(document)
    return _to_schema(entry)


@router.delete(
    "/documents/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "Unknown document"}},
    tags=["Documents"],
)
async def delete_document(
    document_id: str,
    registry: DocumentRegistry = Depends(get_registry),
) -> Response:
    """Remove a document and all of its chunks from the index."""
    if not registry.remove(document_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "message": f"Unknown document: {document_id}"},
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/query",
    response_model=QueryResponse,
    responses={500: {"model": ErrorResponse, "description": "Internal error"}},
    tags=["Query"],
)
async def query_endpoint(
    request: QueryRequest,
    registry: DocumentRegistry = Depends(get_registry),
) -> QueryResponse:
    """
    Answer a question from the uploaded documents.

    The query flows through:
    1. Embedding of the question
    2. Top-k cosine similarity search over the index
    3. Answer generation grounded in the retrieved chunks

    Fallback replies (no documents, embedding or generation failure) are
    returned with status 200 and a matching ``status`` field.
    """
    try:
        result = await registry.orchestrator.answer(request.question, request.top_k)
    except Exception as e:
        logger.exception("Query pipeline failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "internal_error", "message": str(e)},
        )

    return QueryResponse(
        answer=result.message,
        status=result.status,
        sources=result.sources,
        chunks=[
            RetrievedChunkSchema(
                chunk_id=chunk.id,
                document_id=chunk.document_id,
                document_name=chunk.document_name,
                similarity=score if math.isfinite(score) else None,
                preview=chunk.text[:PREVIEW_LENGTH],
            )
            for chunk, score in result.retrieved
        ],
    )


# Create app instance
app = create_app()
