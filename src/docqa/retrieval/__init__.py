"""
Document retrieval components for the RAG pipeline.

Components:
    - chunker: Split documents into overlapping chunks
    - embeddings: Generate vector embeddings via an OpenAI-compatible API
    - indexer: In-memory vector index for cosine similarity search
"""

from docqa.retrieval.chunker import Chunk, split_text
from docqa.retrieval.embeddings import OpenAIEmbedder
from docqa.retrieval.indexer import VectorIndex, cosine_similarity

__all__ = [
    "Chunk",
    "split_text",
    "OpenAIEmbedder",
    "VectorIndex",
    "cosine_similarity",
]
