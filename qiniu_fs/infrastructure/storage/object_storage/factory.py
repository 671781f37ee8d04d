"""
Object Storage Factory

Creates appropriate storage adapters based on configuration.
"""

from typing import Optional
from qiniu_fs.core.config import settings
from qiniu_fs.infrastructure.exceptions import StorageConfigurationError
from .base import FilesystemAdapter, StorageConfig
from .qiniu_adapter import QiniuAdapter


class StorageFactory:
    """Factory for creating filesystem adapters"""

    @staticmethod
    def create_storage(
        storage_type: str = "qiniu",
        config: Optional[StorageConfig] = None
    ) -> FilesystemAdapter:
        """
        Create storage adapter based on type

        Args:
            storage_type: Type of storage (only "qiniu" for now)
            config: Optional custom configuration

        Returns:
            FilesystemAdapter implementation
        """
        if config is None:
            config = StorageFactory._get_default_config(storage_type)

        if storage_type.lower() == "qiniu":
            StorageFactory._check_config(config)
            return QiniuAdapter(config)
        else:
            raise StorageConfigurationError(f"Unsupported storage type: {storage_type}")

    @staticmethod
    def _get_default_config(storage_type: str) -> StorageConfig:
        """Get default configuration from settings"""
        if storage_type.lower() == "qiniu":
            return StorageConfig(
                access_key=settings.QINIU_ACCESS_KEY,
                secret_key=settings.QINIU_SECRET_KEY,
                bucket=settings.QINIU_BUCKET,
                domain=settings.QINIU_DOMAIN,
                scheme=settings.QINIU_URL_SCHEME,
                allow_remote_streams=settings.QINIU_ALLOW_REMOTE_STREAMS,
                list_limit=settings.QINIU_LIST_LIMIT,
            )
        else:
            raise StorageConfigurationError(f"No default configuration for storage type: {storage_type}")

    @staticmethod
    def _check_config(config: StorageConfig) -> None:
        missing = [
            name for name in ('access_key', 'secret_key', 'bucket', 'domain')
            if not getattr(config, name)
        ]
        if missing:
            raise StorageConfigurationError(f"Missing Qiniu configuration: {', '.join(missing)}")

    @staticmethod
    def get_default_storage() -> FilesystemAdapter:
        """Get default storage instance (Qiniu)"""
        return StorageFactory.create_storage("qiniu")
