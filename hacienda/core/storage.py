from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import AsyncIterator

from minio import Minio
from minio.commonconfig import CopySource
from starlette.concurrency import run_in_threadpool

from .config import settings
from .minio_client import minio_client

logger = logging.getLogger("hacienda-files")

FILES_PREFIX = "files/"
TRASH_PREFIX = "trash/"


@dataclass
class StoredObject:
    key: str
    size: int


class ObjectStorage:
    """Path-addressed access to one bucket.

    Keys live under two namespaces: ``files/`` for active blobs and ``trash/``
    for blobs of soft-deleted items. The MinIO client is blocking, so every
    call is pushed to the threadpool.
    """

    def __init__(self, client: Minio, bucket: str, has_credentials: bool = True):
        self.client = client
        self.bucket = bucket
        self.has_credentials = has_credentials

    @staticmethod
    def to_trash_key(key: str) -> str:
        if key.startswith(TRASH_PREFIX):
            return key
        if key.startswith(FILES_PREFIX):
            key = key[len(FILES_PREFIX):]
        return TRASH_PREFIX + key

    @staticmethod
    def to_files_key(key: str) -> str:
        if key.startswith(FILES_PREFIX):
            return key
        if key.startswith(TRASH_PREFIX):
            key = key[len(TRASH_PREFIX):]
        return FILES_PREFIX + key

    async def put_file(self, key: str, path: str, content_type: str) -> None:
        await run_in_threadpool(
            self.client.fput_object,
            bucket_name=self.bucket,
            object_name=key,
            file_path=path,
            content_type=content_type,
        )

    async def stat(self, key: str):
        return await run_in_threadpool(self.client.stat_object, bucket_name=self.bucket, object_name=key)

    async def open(self, key: str):
        return await run_in_threadpool(self.client.get_object, bucket_name=self.bucket, object_name=key)

    async def iter_chunks(self, obj, chunk_size: int = 1024 * 1024) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await run_in_threadpool(obj.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await run_in_threadpool(obj.close)
            await run_in_threadpool(obj.release_conn)

    async def delete(self, key: str) -> None:
        await run_in_threadpool(self.client.remove_object, bucket_name=self.bucket, object_name=key)

    async def copy(self, source_key: str, dest_key: str) -> None:
        await run_in_threadpool(
            self.client.copy_object,
            bucket_name=self.bucket,
            object_name=dest_key,
            source=CopySource(self.bucket, source_key),
        )

    async def move(self, source_key: str, dest_key: str) -> None:
        if source_key == dest_key:
            return
        await self.copy(source_key, dest_key)
        await self.delete(source_key)

    async def list_prefix(self, prefix: str) -> list[StoredObject]:
        def _list():
            return [
                StoredObject(key=obj.object_name, size=obj.size or 0)
                for obj in self.client.list_objects(bucket_name=self.bucket, prefix=prefix, recursive=True)
                if not obj.is_dir and not obj.object_name.endswith("/")
            ]

        return await run_in_threadpool(_list)

    async def presigned_url(self, key: str, expires_seconds: int) -> str:
        return await run_in_threadpool(
            self.client.presigned_get_object,
            bucket_name=self.bucket,
            object_name=key,
            expires=timedelta(seconds=expires_seconds),
        )


storage = ObjectStorage(
    minio_client,
    settings.MINIO_BUCKET,
    has_credentials=bool(settings.MINIO_ACCESS_KEY and settings.MINIO_SECRET_KEY),
)


def get_storage() -> ObjectStorage:
    return storage
