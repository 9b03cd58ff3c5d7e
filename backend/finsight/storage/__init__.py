from .base import DocumentStore, Subscription, StoreError, DocumentNotFound
from .database import SQLiteDocumentStore, get_store, reset_store

__all__ = [
    "DocumentStore",
    "Subscription",
    "StoreError",
    "DocumentNotFound",
    "SQLiteDocumentStore",
    "get_store",
    "reset_store",
]
