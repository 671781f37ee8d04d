"""
Object Storage Infrastructure Module

Provides the filesystem adapter interface and its Qiniu implementation.
"""

from .base import (
    FailureKind,
    FileMetadata,
    FilesystemAdapter,
    OperationFailure,
    StorageConfig,
    normalize_file_info,
)
from .qiniu_adapter import QiniuAdapter, QiniuUploader
from .factory import StorageFactory

__all__ = [
    'FailureKind',
    'FileMetadata',
    'FilesystemAdapter',
    'OperationFailure',
    'StorageConfig',
    'normalize_file_info',
    'QiniuAdapter',
    'QiniuUploader',
    'StorageFactory'
]
