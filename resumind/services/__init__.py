# resumind/services/__init__.py
# ============================================================
# Storage collaborators consumed by the pipeline, plus local
# on-disk implementations used by the CLI.
# ============================================================

from resumind.services.storage import (
    FileKeyValueStore,
    KeyValueStore,
    LocalObjectStorage,
    ObjectStorage,
    StoredFile,
)

__all__ = [
    "FileKeyValueStore",
    "KeyValueStore",
    "LocalObjectStorage",
    "ObjectStorage",
    "StoredFile",
]
