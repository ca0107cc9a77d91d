"""
Ingestion and query pipelines.

Components:
    - models: Document and registry entry types
    - orchestrator: split/embed/index ingestion and the query pipeline
    - registry: document lifecycle tracking with cascading removal
"""

from docqa.pipeline.models import Document, DocumentState, RegistryEntry
from docqa.pipeline.orchestrator import QueryAnswer, RetrievalOrchestrator
from docqa.pipeline.registry import DocumentRegistry

__all__ = [
    "Document",
    "DocumentState",
    "RegistryEntry",
    "QueryAnswer",
    "RetrievalOrchestrator",
    "DocumentRegistry",
]
