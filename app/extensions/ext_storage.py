import logging
from collections.abc import Callable
from urllib.parse import unquote, urlsplit

from configs import app_config
from fastapi import FastAPI
from extensions.storage.base_storage import BaseStorage
from extensions.storage.storage_type import StorageType

logger = logging.getLogger(__name__)

PUBLIC_OBJECT_MARKER = "/object/public/"


class Storage:
    """
    Facade over the configured storage backend.

    Every image lives under ``<STORAGE_BUCKET>/<path>`` in the backend and is
    served publicly at ``<STORAGE_PUBLIC_URL>/<STORAGE_BUCKET>/<path>``.
    """

    def init_app(self, runner: BaseStorage | None = None):
        if runner is None:
            storage_factory = self.get_storage_factory(app_config.STORAGE_TYPE)
            runner = storage_factory()
        self.storage_runner = runner

    @staticmethod
    def get_storage_factory(storage_type: str) -> Callable[[], BaseStorage]:
        match storage_type:
            case StorageType.OPENDAL:
                from extensions.storage.opendal_storage import AsyncOpenDALStorage

                return lambda: AsyncOpenDALStorage(app_config.OPENDAL_SCHEME)
            case StorageType.LOCAL:
                from extensions.storage.opendal_storage import AsyncOpenDALStorage

                return lambda: AsyncOpenDALStorage(scheme="fs", root=app_config.STORAGE_LOCAL_PATH)

            case _:
                raise ValueError(f"unsupported storage type {storage_type}")

    @staticmethod
    def object_key(path: str) -> str:
        return f"{app_config.STORAGE_BUCKET}/{path.lstrip('/')}"

    @staticmethod
    def public_url(path: str) -> str:
        base = app_config.STORAGE_PUBLIC_URL.rstrip("/")
        return f"{base}/{app_config.STORAGE_BUCKET}/{path.lstrip('/')}"

    @staticmethod
    def key_from_public_url(url: str) -> str | None:
        """
        Recover the in-bucket path from a public object URL.

        Returns None when the URL does not point into our bucket.
        """
        bucket = app_config.STORAGE_BUCKET
        url = url.split("?", 1)[0].split("#", 1)[0]
        prefix = f"{app_config.STORAGE_PUBLIC_URL.rstrip('/')}/{bucket}/"
        if url.startswith(prefix):
            path = url[len(prefix) :]
        else:
            url_path = urlsplit(url).path
            if PUBLIC_OBJECT_MARKER not in url_path:
                return None
            remainder = url_path.split(PUBLIC_OBJECT_MARKER, 1)[1]
            found_bucket, _, path = remainder.partition("/")
            if found_bucket != bucket:
                return None
        path = unquote(path).strip("/")
        if not path or ".." in path.split("/"):
            return None
        return path

    async def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        """
        Write a new object and return its public URL.

        Raises:
            FileExistsError: an object already exists at ``path``
        """
        key = self.object_key(path)
        if await self.storage_runner.exists(key):
            raise FileExistsError(f"The resource already exists: {path}")
        await self.storage_runner.save(key, data, content_type)
        logger.info(f"Stored {len(data)} bytes at {key}")
        return self.public_url(path)

    async def get(self, path: str) -> bytes:
        return await self.storage_runner.load_once(self.object_key(path))

    async def content_type(self, path: str) -> str | None:
        return await self.storage_runner.content_type(self.object_key(path))


storage = Storage()


def init_app(app: FastAPI):
    storage.init_app()
    app.state.storage = storage
