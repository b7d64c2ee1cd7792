"""Storage package — object store collaborators for evidence bytes.

Files:
  object_store.py  — ObjectStore protocol, LocalObjectStore, S3ObjectStore (boto3)
"""

from app.storage.object_store import (
    LocalObjectStore,
    ObjectStore,
    S3ObjectStore,
    SignedUrl,
    object_store_from_settings,
)

__all__ = [
    "LocalObjectStore",
    "ObjectStore",
    "S3ObjectStore",
    "SignedUrl",
    "object_store_from_settings",
]
