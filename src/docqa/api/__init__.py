"""
FastAPI REST API for docqa.

Endpoints:
    GET    /health           - Health check
    GET    /documents        - List documents and lifecycle state
    POST   /documents        - Upload and index a text document
    DELETE /documents/{id}   - Remove a document and its chunks
    POST   /query            - Answer a question from the documents
"""

from docqa.api.main import app, create_app

__all__ = ["app", "create_app"]
