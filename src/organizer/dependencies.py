"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from .store import DocumentStore, create_store

_store: Optional[DocumentStore] = None


# PUBLIC_INTERFACE
def get_store() -> DocumentStore:
    """
    Return a singleton store so documents persist across requests.
    """
    global _store
    if _store is None:
        _store = create_store()
    return _store
