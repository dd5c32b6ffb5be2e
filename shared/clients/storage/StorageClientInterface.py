from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class StorageClientInterface(ABC):
    """Read access to the object storage holding the raw uploaded files."""

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.bucket = helper_config.get_string_val("STORAGE_BUCKET", default="documents")
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Validates that all required configuration values for the client are set and valid.

        Raises:
            ValueError: If any required configuration value is missing or invalid.
        """
        for config in self._get_required_config():
            _ = self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the storage engine. E.g. "Local"
        """
        pass

    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        pass

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Retrieves the value of a STORAGE_{ENGINE}_{KEY} configuration key.

        Raises:
            ValueError: If the key is required but unset, or the type is unsupported.
        """
        key = f"STORAGE_{self.get_engine_name().upper()}_{raw_key.upper()}"
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        elif val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        elif val_type == "bool":
            return self._helper_config.get_bool_val(key, default=default)
        else:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{raw_key}' in storage client '{self.get_engine_name()}'.")

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def boot(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def do_get_object(self, bucket: str, key: str) -> bytes:
        """Fetch the raw bytes of a stored object.

        Args:
            bucket (str): The bucket (namespace) holding the object.
            key (str): The object key, i.e. the document's file path.

        Returns:
            bytes: The object content.

        Raises:
            FileNotFoundError: If the object does not exist.
            OSError: If the storage backend cannot be read.
        """
        pass
