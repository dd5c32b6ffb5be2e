import asyncio
from pathlib import Path

from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class StorageClientLocal(StorageClientInterface):
    """Object storage backed by a local directory: {ROOT}/{bucket}/{key}."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._root = Path(self.get_config_val("ROOT", default="./storage", val_type="string")).resolve()

    def _get_engine_name(self) -> str:
        return "Local"

    def _get_required_config(self) -> list[EnvConfig]:
        return [EnvConfig(env_key="ROOT", val_type="string", default="./storage")]

    def _resolve(self, bucket: str, key: str) -> Path:
        bucket_dir = (self._root / bucket).resolve()
        path = (bucket_dir / key.lstrip("/")).resolve()
        if bucket_dir not in path.parents:
            raise FileNotFoundError(f"Object key '{key}' escapes bucket '{bucket}'.")
        return path

    async def boot(self) -> None:
        self.logging.info("Local storage client reading from %s", self._root)

    async def do_get_object(self, bucket: str, key: str) -> bytes:
        path = self._resolve(bucket, key)
        return await asyncio.to_thread(path.read_bytes)
