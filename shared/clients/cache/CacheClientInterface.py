from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class CacheClientInterface(ABC):
    """Key/value store with per-entry expiry used by the cache layer.

    Values are opaque strings; serialization happens in CacheService. Every
    operation raises CacheUnavailable when the backing store cannot be reached.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Retrieves the value of a CACHE_{ENGINE}_{KEY} configuration key.

        Raises:
            ValueError: If the key is required but unset, or the type is unsupported.
        """
        key = f"CACHE_{self.get_engine_name().upper()}_{raw_key.upper()}"
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        elif val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        else:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{raw_key}' in cache client '{self.get_engine_name()}'.")

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def boot(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def do_get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is missing or expired."""
        pass

    @abstractmethod
    async def do_set(self, key: str, value: str, ttl: float | None = None) -> None:
        """Store a value. ttl in seconds; None keeps the entry until deleted."""
        pass

    @abstractmethod
    async def do_delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        pass

    @abstractmethod
    async def do_delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern (e.g. "search:*"). Returns the number deleted."""
        pass

    @abstractmethod
    async def do_exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def do_flush(self) -> None:
        """Remove every entry."""
        pass
