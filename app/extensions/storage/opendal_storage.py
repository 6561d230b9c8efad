import logging
import os
from pathlib import Path

import opendal  # type: ignore[import]
from dotenv import dotenv_values

from configs import app_config
from extensions.storage.base_storage import BaseStorage

logger = logging.getLogger(__name__)


def _get_opendal_kwargs(*, scheme: str, env_file_path: str = ".env", prefix: str = "OPENDAL_"):
    kwargs = {}
    config_prefix = prefix + scheme.upper() + "_"
    for key, value in os.environ.items():
        if key.startswith(config_prefix):
            kwargs[key[len(config_prefix) :].lower()] = value

    file_env_vars: dict = dotenv_values(env_file_path) or {}
    for key, value in file_env_vars.items():
        if (
            key.startswith(config_prefix)
            and key[len(config_prefix) :].lower() not in kwargs
            and value
        ):
            kwargs[key[len(config_prefix) :].lower()] = value

    return kwargs


class AsyncOpenDALStorage(BaseStorage):
    def __init__(self, scheme: str, **kwargs):
        kwargs = kwargs or _get_opendal_kwargs(scheme=scheme)

        if scheme == "fs":
            root = kwargs.setdefault("root", app_config.OPENDAL_ROOT)
            Path(root).mkdir(parents=True, exist_ok=True)

        self.op = opendal.AsyncOperator(scheme=scheme, **kwargs)  # type: ignore
        logger.debug("opendal operator created with scheme %s", scheme)
        self._content_type_supported = self.op.capability().write_with_content_type
        retry_layer = opendal.layers.RetryLayer(
            max_times=app_config.OPENDAL_RETRY_MAX_TIMES, factor=2.0, jitter=True
        )
        self.op = self.op.layer(retry_layer)
        logger.debug("added retry layer to opendal operator")

    async def save(self, filename: str, data: bytes, content_type: str | None = None):
        if content_type and self._content_type_supported:
            await self.op.write(filename, data, content_type=content_type)
        else:
            await self.op.write(filename, data)
        logger.debug("file %s saved (%d bytes)", filename, len(data))

    async def load_once(self, filename: str) -> bytes:
        if not await self.exists(filename):
            raise FileNotFoundError("File not found")

        content: bytes = bytes(await self.op.read(filename))
        logger.debug("file %s loaded", filename)
        return content

    async def exists(self, filename: str) -> bool:
        res: bool = await self.op.exists(filename)
        return res

    async def content_type(self, filename: str) -> str | None:
        if not self._content_type_supported:
            return None
        metadata = await self.op.stat(filename)
        return metadata.content_type or None
