"""
Object Storage Abstract Base Classes

Defines the filesystem-style interface a storage consumer expects, the
normalized metadata shape, and the narrow client capabilities an adapter
depends on so the cloud SDK can be swapped for test doubles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Protocol, Tuple, Union

# putTime is reported in units of 100 nanoseconds
PUT_TIME_UNITS_PER_SECOND = 10000000

VISIBILITY_PUBLIC = "public"


@dataclass
class StorageConfig:
    """Configuration for a Qiniu-backed adapter"""
    access_key: str
    secret_key: str
    bucket: str
    domain: str
    scheme: str = "http"
    allow_remote_streams: bool = True
    list_limit: int = 1000


@dataclass
class FileMetadata:
    """Normalized file metadata"""
    path: str
    timestamp: int
    size: int
    type: str = "file"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class FailureKind(str, Enum):
    SERVICE_ERROR = "service_error"
    NOT_FOUND = "not_found"
    UNSUPPORTED = "unsupported"


@dataclass
class OperationFailure:
    """
    Failed operation result.

    Always falsy, so ``if not adapter.write(...)`` behaves like a boolean
    failure while ``kind`` tells callers what went wrong.
    """
    kind: FailureKind
    path: Optional[str] = None
    message: str = ""

    def __bool__(self) -> bool:
        return False


def normalize_file_info(filestat: Mapping[str, Any]) -> FileMetadata:
    """
    Map a raw service record onto FileMetadata

    Args:
        filestat: Record carrying ``key``, ``putTime`` and ``fsize``

    Returns:
        Normalized metadata with the timestamp in whole seconds
    """
    return FileMetadata(
        path=filestat['key'],
        timestamp=int(filestat['putTime']) // PUT_TIME_UNITS_PER_SECOND,
        size=int(filestat['fsize']),
    )


class ResponseInfo(Protocol):
    """Status part of every SDK call result"""
    status_code: int
    error: Optional[str]

    def ok(self) -> bool: ...


class BucketClient(Protocol):
    """Object management calls, shaped like ``qiniu.BucketManager``"""

    def stat(self, bucket: str, key: str) -> Tuple[Optional[Dict[str, Any]], ResponseInfo]: ...

    def delete(self, bucket: str, key: str) -> Tuple[Optional[Dict[str, Any]], ResponseInfo]: ...

    def rename(self, bucket: str, key: str, key_to: str) -> Tuple[Optional[Dict[str, Any]], ResponseInfo]: ...

    def copy(
        self, bucket: str, key: str, bucket_to: str, key_to: str
    ) -> Tuple[Optional[Dict[str, Any]], ResponseInfo]: ...

    def list(
        self,
        bucket: str,
        prefix: Optional[str] = None,
        marker: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Tuple[Optional[Dict[str, Any]], bool, ResponseInfo]: ...


class UploadClient(Protocol):
    """Upload call taking a signed token"""

    def put(self, token: str, key: str, data: bytes) -> Tuple[Optional[Dict[str, Any]], ResponseInfo]: ...


class TokenSigner(Protocol):
    """Derives upload tokens from the account credentials, like ``qiniu.Auth``"""

    def upload_token(self, bucket: str) -> str: ...


Contents = Union[bytes, str]
WriteResult = Union[Dict[str, Any], OperationFailure]
MetadataResult = Union[FileMetadata, OperationFailure]


class FilesystemAdapter(ABC):
    """
    Abstract filesystem-style interface over an object store

    This interface defines the contract a storage-abstraction consumer
    calls into. Failures are returned, not raised: boolean operations
    return False, richer operations return an OperationFailure.
    """

    def __init__(self, config: StorageConfig):
        self.config = config

    @abstractmethod
    def write(self, path: str, contents: Contents, options: Optional[Mapping[str, Any]] = None) -> WriteResult:
        """
        Write a new file

        Args:
            path: Object key
            contents: File content as bytes or text
            options: Consumer options, only ``visibility`` is read

        Returns:
            Object metadata on success, OperationFailure otherwise
        """
        pass

    @abstractmethod
    def write_stream(
        self, path: str, resource: BinaryIO, options: Optional[Mapping[str, Any]] = None
    ) -> WriteResult:
        """
        Write a new file from a stream

        Args:
            path: Object key
            resource: Readable binary stream, buffered fully before upload
            options: Consumer options, only ``visibility`` is read

        Returns:
            Object metadata on success, OperationFailure otherwise
        """
        pass

    @abstractmethod
    def update(self, path: str, contents: Contents, options: Optional[Mapping[str, Any]] = None) -> WriteResult:
        """Replace a file. Not atomic."""
        pass

    @abstractmethod
    def update_stream(
        self, path: str, resource: BinaryIO, options: Optional[Mapping[str, Any]] = None
    ) -> WriteResult:
        """Replace a file from a stream. Not atomic."""
        pass

    @abstractmethod
    def rename(self, path: str, new_path: str) -> bool:
        """
        Rename a file inside the bound bucket

        Args:
            path: Current object key
            new_path: New object key

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def copy(self, path: str, new_path: str) -> bool:
        """
        Copy a file inside the bound bucket

        Args:
            path: Source object key
            new_path: Destination object key

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """
        Delete a file

        Args:
            path: Object key

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    def delete_dir(self, dirname: str) -> bool:
        """
        Delete a directory

        Object stores have no real directories, so this is a local no-op.

        Args:
            dirname: Directory name

        Returns:
            True
        """
        pass

    @abstractmethod
    def create_dir(
        self, dirname: str, options: Optional[Mapping[str, Any]] = None
    ) -> Union[Dict[str, str], OperationFailure]:
        """
        Create a directory

        No service call is made; a placeholder record is returned.

        Args:
            dirname: Directory name
            options: Consumer options, unused

        Returns:
            ``{"path": dirname, "type": "dir"}``
        """
        pass

    @abstractmethod
    def set_visibility(self, path: str, visibility: str) -> Union[Dict[str, str], OperationFailure]:
        """
        Set the visibility of a file

        Args:
            path: Object key
            visibility: "public" or "private"

        Returns:
            Visibility record, or OperationFailure when unsupported
        """
        pass

    @abstractmethod
    def get_visibility(self, path: str) -> Union[Dict[str, str], OperationFailure]:
        """
        Get the visibility of a file

        Args:
            path: Object key

        Returns:
            Visibility record, or OperationFailure when unsupported
        """
        pass

    @abstractmethod
    def has(self, path: str) -> bool:
        """
        Check whether a file exists

        Args:
            path: Object key

        Returns:
            True if the object exists, False otherwise
        """
        pass

    @abstractmethod
    def read(self, path: str) -> Union[Dict[str, Any], OperationFailure]:
        """
        Read a file

        Args:
            path: Object key

        Returns:
            ``{"contents": bytes, "path": path}`` or OperationFailure
        """
        pass

    @abstractmethod
    def read_stream(self, path: str) -> Union[Dict[str, Any], OperationFailure]:
        """
        Read a file as a stream

        Args:
            path: Object key

        Returns:
            ``{"stream": file-like, "path": path}`` or OperationFailure
        """
        pass

    @abstractmethod
    def list_contents(self, directory: str = "", recursive: bool = False) -> List[FileMetadata]:
        """
        List files under a prefix

        Args:
            directory: Key prefix
            recursive: Accepted for interface compatibility

        Returns:
            List of file metadata
        """
        pass

    @abstractmethod
    def get_metadata(self, path: str) -> MetadataResult:
        """
        Get all the metadata of a file

        Args:
            path: Object key

        Returns:
            FileMetadata, or OperationFailure (NOT_FOUND when the object is missing)
        """
        pass

    @abstractmethod
    def get_size(self, path: str) -> MetadataResult:
        """
        Get the size of a file

        Args:
            path: Object key

        Returns:
            Full FileMetadata (read ``size`` from it), or OperationFailure
        """
        pass

    @abstractmethod
    def get_mimetype(self, path: str) -> Union[str, OperationFailure]:
        """
        Get the MIME type of a file

        Args:
            path: Object key

        Returns:
            MIME type string, or OperationFailure
        """
        pass

    @abstractmethod
    def get_timestamp(self, path: str) -> MetadataResult:
        """
        Get the last-modified timestamp of a file

        Args:
            path: Object key

        Returns:
            Full FileMetadata (read ``timestamp`` from it), or OperationFailure
        """
        pass
