"""外部键值文档存储。"""
from pill_reminder.storage.documents import (
    ConflictError,
    Document,
    DocumentStore,
    JsonDocumentStore,
    StoreError,
)

__all__ = [
    "ConflictError",
    "Document",
    "DocumentStore",
    "JsonDocumentStore",
    "StoreError",
]
