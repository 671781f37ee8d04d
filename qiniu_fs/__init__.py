"""
Qiniu Kodo filesystem adapter.

Exposes the adapter, its factory and the metadata/failure types.
"""

from .infrastructure.storage.object_storage import (
    FailureKind,
    FileMetadata,
    FilesystemAdapter,
    OperationFailure,
    QiniuAdapter,
    StorageConfig,
    StorageFactory,
)

__all__ = [
    'FailureKind',
    'FileMetadata',
    'FilesystemAdapter',
    'OperationFailure',
    'QiniuAdapter',
    'StorageConfig',
    'StorageFactory',
]
