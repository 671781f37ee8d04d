"""
Qiniu Kodo Object Storage Adapter

Implements FilesystemAdapter for a single Qiniu bucket.
Management calls go through ``qiniu.BucketManager``, uploads through the
form upload API, and reads through plain HTTP on the bucket's public domain.
"""

import logging
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

import requests
from qiniu import Auth, BucketManager, put_data

from .base import (
    VISIBILITY_PUBLIC,
    BucketClient,
    Contents,
    FailureKind,
    FileMetadata,
    FilesystemAdapter,
    MetadataResult,
    OperationFailure,
    StorageConfig,
    TokenSigner,
    UploadClient,
    WriteResult,
    normalize_file_info,
)

logger = logging.getLogger(__name__)

# 七牛云 "资源不存在" 状态码
STATUS_NOT_FOUND = 612


class QiniuUploader:
    """UploadClient backed by ``qiniu.put_data``"""

    def put(self, token: str, key: str, data: bytes):
        return put_data(token, key, data)


class QiniuAdapter(FilesystemAdapter):
    """
    Qiniu implementation of FilesystemAdapter

    Bound to one bucket for its lifetime. Reads require the bucket to be
    publicly readable through ``config.domain``.
    """

    def __init__(
        self,
        config: StorageConfig,
        bucket_manager: Optional[BucketClient] = None,
        uploader: Optional[UploadClient] = None,
        auth: Optional[TokenSigner] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(config)
        self.auth = auth if auth is not None else Auth(config.access_key, config.secret_key)
        self.bucket_manager = bucket_manager if bucket_manager is not None else BucketManager(self.auth)
        self.uploader = uploader if uploader is not None else QiniuUploader()
        self.session = session if session is not None else requests.Session()

    @property
    def bucket(self) -> str:
        return self.config.bucket

    def upload_token(self) -> str:
        """Sign a fresh upload token for the bound bucket"""
        return self.auth.upload_token(self.bucket)

    def public_url(self, path: str) -> str:
        """Build the public read URL of an object"""
        return f"{self.config.scheme}://{self.config.domain}/{quote(path, safe='/')}"

    @staticmethod
    def _error_message(info: Any) -> str:
        if info is None:
            return "no response"
        error = getattr(info, 'error', None)
        return f"status={getattr(info, 'status_code', None)} error={error}"

    @staticmethod
    def _succeeded(info: Any) -> bool:
        return info is not None and info.ok()

    def _requested_visibility(self, path: str, options: Optional[Mapping[str, Any]]) -> Optional[str]:
        visibility = (options or {}).get('visibility')
        if visibility and visibility != VISIBILITY_PUBLIC:
            logger.warning(f"不支持设置可见性, 已忽略: {self.bucket}/{path} visibility={visibility}")
        return visibility

    def write(self, path: str, contents: Contents, options: Optional[Mapping[str, Any]] = None) -> WriteResult:
        """Upload bytes to Qiniu with a freshly signed token"""
        self._requested_visibility(path, options)
        data = contents.encode('utf-8') if isinstance(contents, str) else contents

        try:
            logger.debug(f"正在上传对象: {self.bucket}/{path} (大小: {len(data)}字节)")
            ret, info = self.uploader.put(self.upload_token(), path, data)
        except Exception as e:
            logger.error(f"❌ 上传过程中发生错误 {self.bucket}/{path}: {str(e)}")
            return OperationFailure(FailureKind.SERVICE_ERROR, path, str(e))

        if ret is None or not self._succeeded(info):
            message = self._error_message(info)
            logger.error(f"❌ 文件上传失败 {self.bucket}/{path}: {message}")
            return OperationFailure(FailureKind.SERVICE_ERROR, path, message)

        logger.info(f"✅ 文件对象上传成功: {self.bucket}/{path}")
        return {
            'type': 'file',
            'path': ret.get('key', path),
            'size': len(data),
            'hash': ret.get('hash'),
        }

    def write_stream(
        self, path: str, resource: BinaryIO, options: Optional[Mapping[str, Any]] = None
    ) -> WriteResult:
        """Buffer a stream fully, then upload it"""
        contents = self._buffer_stream(path, resource)
        if isinstance(contents, OperationFailure):
            return contents
        return self._write_buffered(path, contents, options)

    def _buffer_stream(self, path: str, resource: BinaryIO) -> Union[bytes, OperationFailure]:
        # 上传接口需要完整的字节内容，没有分片上传路径
        try:
            return resource.read()
        except Exception as e:
            logger.error(f"❌ 读取待上传的数据流失败 {self.bucket}/{path}: {str(e)}")
            return OperationFailure(FailureKind.SERVICE_ERROR, path, str(e))

    def _write_buffered(self, path: str, contents: bytes, options: Optional[Mapping[str, Any]]) -> WriteResult:
        response = self.write(path, contents, options)
        if not response:
            return response

        response['visibility'] = (options or {}).get('visibility')
        return response

    def update(self, path: str, contents: Contents, options: Optional[Mapping[str, Any]] = None) -> WriteResult:
        # 先删后写，不是原子操作：删除成功而写入失败时对象将不存在
        self.delete(path)
        return self.write(path, contents, options)

    def update_stream(
        self, path: str, resource: BinaryIO, options: Optional[Mapping[str, Any]] = None
    ) -> WriteResult:
        # 先读完数据流再删除，读取失败时原对象保持不变
        contents = self._buffer_stream(path, resource)
        if isinstance(contents, OperationFailure):
            return contents

        self.delete(path)
        return self._write_buffered(path, contents, options)

    def rename(self, path: str, new_path: str) -> bool:
        """Rename (move) an object inside the bound bucket"""
        try:
            logger.debug(f"正在重命名文件: {self.bucket}/{path} → {new_path}")
            _, info = self.bucket_manager.rename(self.bucket, path, new_path)
        except Exception as e:
            logger.error(f"❌ 重命名过程中发生错误: {str(e)}")
            return False

        if not self._succeeded(info):
            logger.error(f"❌ 重命名文件失败 {self.bucket}/{path} → {new_path}: {self._error_message(info)}")
            return False

        logger.info(f"✅ 文件重命名成功: {self.bucket}/{path} → {new_path}")
        return True

    def copy(self, path: str, new_path: str) -> bool:
        """Copy an object, source and destination both in the bound bucket"""
        try:
            logger.debug(f"正在复制文件: {self.bucket}/{path} → {new_path}")
            _, info = self.bucket_manager.copy(self.bucket, path, self.bucket, new_path)
        except Exception as e:
            logger.error(f"❌ 复制过程中发生错误: {str(e)}")
            return False

        if not self._succeeded(info):
            logger.error(f"❌ 复制文件失败 {self.bucket}/{path} → {new_path}: {self._error_message(info)}")
            return False

        logger.info(f"✅ 文件复制成功: {self.bucket}/{path} → {new_path}")
        return True

    def delete(self, path: str) -> bool:
        """Delete an object"""
        try:
            logger.debug(f"正在删除文件: {self.bucket}/{path}")
            _, info = self.bucket_manager.delete(self.bucket, path)
        except Exception as e:
            logger.error(f"❌ 删除过程中发生错误: {str(e)}")
            return False

        if not self._succeeded(info):
            logger.error(f"❌ 删除文件失败 {self.bucket}/{path}: {self._error_message(info)}")
            return False

        logger.info(f"✅ 文件删除成功: {self.bucket}/{path}")
        return True

    def delete_dir(self, dirname: str) -> bool:
        # 对象存储没有真正的目录
        return True

    def create_dir(
        self, dirname: str, options: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, str]:
        return {'path': dirname, 'type': 'dir'}

    def set_visibility(self, path: str, visibility: str) -> OperationFailure:
        # TODO: 七牛只有存储空间级别的公开/私有，需要通过空间设置接口实现
        return OperationFailure(FailureKind.UNSUPPORTED, path, "visibility is not supported")

    def get_visibility(self, path: str) -> OperationFailure:
        return OperationFailure(FailureKind.UNSUPPORTED, path, "visibility is not supported")

    def _stat(self, path: str) -> Union[Dict[str, Any], OperationFailure]:
        try:
            ret, info = self.bucket_manager.stat(self.bucket, path)
        except Exception as e:
            logger.error(f"❌ 获取文件信息时发生错误 {self.bucket}/{path}: {str(e)}")
            return OperationFailure(FailureKind.SERVICE_ERROR, path, str(e))

        status_code = getattr(info, 'status_code', None)
        if status_code == STATUS_NOT_FOUND:
            return OperationFailure(FailureKind.NOT_FOUND, path, "object not found")

        if not self._succeeded(info):
            message = self._error_message(info)
            logger.error(f"❌ 获取文件信息失败 {self.bucket}/{path}: {message}")
            return OperationFailure(FailureKind.SERVICE_ERROR, path, message)

        if not isinstance(ret, dict) or not ret:
            return OperationFailure(FailureKind.NOT_FOUND, path, "empty stat response")

        return ret

    def has(self, path: str) -> bool:
        """Check if an object exists in the bucket"""
        return isinstance(self._stat(path), dict)

    def read(self, path: str) -> Union[Dict[str, Any], OperationFailure]:
        """Fetch the whole object through the public domain"""
        url = self.public_url(path)
        try:
            logger.debug(f"正在读取文件: {url}")
            response = self.session.get(url)
            response.raise_for_status()
        except requests.HTTPError as e:
            return self._http_failure(path, e)
        except requests.RequestException as e:
            logger.error(f"❌ 读取文件失败 {url}: {str(e)}")
            return OperationFailure(FailureKind.SERVICE_ERROR, path, str(e))

        return {'contents': response.content, 'path': path}

    def read_stream(self, path: str) -> Union[Dict[str, Any], OperationFailure]:
        """Open a streaming handle on the public URL"""
        if not self.config.allow_remote_streams:
            logger.warning(f"当前配置不允许打开远程流: {self.bucket}/{path}")
            return OperationFailure(FailureKind.UNSUPPORTED, path, "remote streams are disabled")

        url = self.public_url(path)
        try:
            logger.debug(f"正在获取文件流: {url}")
            response = self.session.get(url, stream=True)
            response.raise_for_status()
        except requests.HTTPError as e:
            if e.response is not None:
                e.response.close()
            return self._http_failure(path, e)
        except requests.RequestException as e:
            logger.error(f"❌ 获取文件流失败 {url}: {str(e)}")
            return OperationFailure(FailureKind.SERVICE_ERROR, path, str(e))

        response.raw.decode_content = True
        return {'stream': response.raw, 'path': path}

    def _http_failure(self, path: str, error: requests.HTTPError) -> OperationFailure:
        status_code = error.response.status_code if error.response is not None else None
        if status_code == 404:
            return OperationFailure(FailureKind.NOT_FOUND, path, str(error))

        logger.error(f"❌ 读取文件失败 {self.bucket}/{path}: {str(error)}")
        return OperationFailure(FailureKind.SERVICE_ERROR, path, str(error))

    def list_contents(self, directory: str = "", recursive: bool = False) -> List[FileMetadata]:
        """List objects under a prefix, following pagination markers"""
        # recursive 无效：七牛的列举接口本身就是扁平的
        files = []
        marker = None
        try:
            while True:
                ret, eof, info = self.bucket_manager.list(
                    self.bucket,
                    prefix=directory,
                    marker=marker,
                    limit=self.config.list_limit,
                )
                if ret is None or not self._succeeded(info):
                    logger.error(f"❌ 列出文件失败 {self.bucket}/{directory}: {self._error_message(info)}")
                    return []

                for item in ret.get('items', []):
                    files.append(normalize_file_info(item))

                marker = ret.get('marker')
                if eof or not marker:
                    break
        except Exception as e:
            logger.error(f"❌ 列出文件时发生错误: {str(e)}")
            return []

        logger.debug(f"列出文件成功: {self.bucket}/{directory} (共{len(files)}个文件)")
        return files

    def get_metadata(self, path: str) -> MetadataResult:
        """Stat an object and return its normalized metadata"""
        stat = self._stat(path)
        if not stat:
            return stat

        try:
            return normalize_file_info(dict(stat, key=path))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"❌ 文件元数据格式错误 {self.bucket}/{path}: {str(e)}")
            return OperationFailure(FailureKind.NOT_FOUND, path, "malformed stat response")

    def get_size(self, path: str) -> MetadataResult:
        return self.get_metadata(path)

    def get_timestamp(self, path: str) -> MetadataResult:
        return self.get_metadata(path)

    def get_mimetype(self, path: str) -> Union[str, OperationFailure]:
        """Return the raw ``mimeType`` of an object"""
        stat = self._stat(path)
        if not stat:
            return stat

        mimetype = stat.get('mimeType')
        if mimetype is None:
            return OperationFailure(FailureKind.NOT_FOUND, path, "stat response has no mimeType")
        return mimetype
