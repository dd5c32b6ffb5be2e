from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Describes one environment setting a client needs before it can boot.

    The key is relative to the client's namespace, so ``EnvConfig(env_key="BASE_URL")``
    on the Qdrant RAG client resolves to ``RAG_QDRANT_BASE_URL``.

    Attributes:
        env_key (str): The key of the setting, without the client prefix.
        val_type (str): "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Value used when the variable is unset.
            None marks the setting as required.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
