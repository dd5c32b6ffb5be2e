from contextlib import AsyncExitStack
from typing import Any

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.clients.storage.StorageClientInterface import StorageClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchBucket", "404"}


class StorageClientS3(StorageClientInterface):
    """Object storage on an S3 compatible endpoint such as MinIO.

    One client is opened at boot and reused for every read.
    """

    def __init__(self, helper_config: HelperConfig, session: Any = None):
        super().__init__(helper_config=helper_config)
        self._endpoint_url = self.get_config_val("ENDPOINT_URL", default="http://localhost:9000", val_type="string")
        self._access_key = self.get_config_val("ACCESS_KEY", default="minioadmin", val_type="string")
        self._secret_key = self.get_config_val("SECRET_KEY", default="minioadmin", val_type="string")
        self._region = self.get_config_val("REGION", default="us-east-1", val_type="string")
        self._session = session or aioboto3.Session()
        self._exit_stack: AsyncExitStack | None = None
        self._s3: Any = None

    def _get_engine_name(self) -> str:
        return "S3"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="ENDPOINT_URL", val_type="string", default="http://localhost:9000"),
            EnvConfig(env_key="ACCESS_KEY", val_type="string", default="minioadmin"),
            EnvConfig(env_key="SECRET_KEY", val_type="string", default="minioadmin"),
            EnvConfig(env_key="REGION", val_type="string", default="us-east-1"),
        ]

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        self._exit_stack = AsyncExitStack()
        self._s3 = await self._exit_stack.enter_async_context(
            self._session.client(
                "s3",
                endpoint_url=self._endpoint_url,
                aws_access_key_id=self._access_key,
                aws_secret_access_key=self._secret_key,
                region_name=self._region,
            )
        )
        self.logging.info("S3 storage client initialised for %s (bucket %r)", self._endpoint_url, self.bucket)

    async def close(self) -> None:
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
            self._s3 = None

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_get_object(self, bucket: str, key: str) -> bytes:
        if self._s3 is None:
            raise OSError("S3 client not initialised. Call boot() before reading objects.")
        object_key = key.lstrip("/")
        try:
            response = await self._s3.get_object(Bucket=bucket, Key=object_key)
            async with response["Body"] as stream:
                return await stream.read()
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in MISSING_OBJECT_CODES:
                raise FileNotFoundError(f"Object '{object_key}' not found in bucket '{bucket}'.") from e
            raise OSError(f"S3 get_object failed for '{object_key}': {code or e}") from e
        except BotoCoreError as e:
            raise OSError(f"S3 endpoint {self._endpoint_url} unreachable: {e}") from e
