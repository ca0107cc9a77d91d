"""
docqa: Question answering grounded in user-supplied documents

This package splits uploaded documents into overlapping chunks, embeds
them, keeps them in an in-memory vector index, and answers questions
from the most similar chunks with the document names listed as sources.

Key Components:
    - retrieval: Text splitting, embeddings, and the vector index
    - llm: Chat completion client used to compose answers
    - pipeline: Ingestion/query orchestration and the document registry
    - api: FastAPI REST endpoints
    - cli: Typer command-line interface

Example:
    >>> from docqa.pipeline import Document
    >>> from docqa.retrieval.resources import get_registry
    >>> registry = get_registry()
    >>> await registry.upload(Document.create("A", "Sentence one. Sentence two."))
    >>> print(await registry.orchestrator.answer_query("What is sentence one?"))
"""

__version__ = "0.1.0"

from docqa.config import settings

__all__ = [
    "__version__",
    "settings",
]
