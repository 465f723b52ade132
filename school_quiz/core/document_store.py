"""In-memory document store with query-by-field lookups.

Documents are plain dictionaries grouped into collections addressed by a
path string. Reads always return copies so callers can never mutate stored
state behind the store's back.
"""

from __future__ import annotations

import copy
from threading import Lock
from uuid import uuid4

from school_quiz.core.errors import DuplicateDocumentError

Document = dict[str, object]


class DocumentStore:
    """Thread-safe collection of loosely typed documents."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._collections: dict[str, dict[str, Document]] = {}

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            document = self._collections.get(collection, {}).get(doc_id)
            return copy.deepcopy(document) if document is not None else None

    def set(self, collection: str, doc_id: str, data: Document) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)

    def add(self, collection: str, data: Document, key: str | None = None) -> str:
        """Insert a document and return its id.

        When ``key`` is given it is used as the document id and a second
        insert under the same key is rejected.
        """
        with self._lock:
            documents = self._collections.setdefault(collection, {})
            if key is not None and key in documents:
                raise DuplicateDocumentError(
                    f"Document '{key}' already exists in {collection}."
                )
            doc_id = key if key is not None else uuid4().hex
            documents[doc_id] = copy.deepcopy(data)
            return doc_id

    def query(self, collection: str, **equals: object) -> list[tuple[str, Document]]:
        """Return ``(id, document)`` pairs whose fields equal every filter."""
        with self._lock:
            documents = self._collections.get(collection, {})
            return [
                (doc_id, copy.deepcopy(document))
                for doc_id, document in documents.items()
                if all(document.get(name) == value for name, value in equals.items())
            ]

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._collections.get(collection, {}))
