from typing import Any

from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """Instantiates the collaborator client selected by "{KIND}_ENGINE".

    The engine name is resolved to the class {class_prefix}{Engine} in the
    module shared.clients.{kind}.{engine}.{class_prefix}{Engine}, so adding an
    engine only needs a new module, e.g. RAG_ENGINE=qdrant loads
    shared.clients.rag.qdrant.RAGClientQdrant.
    """

    kind: str = ""
    class_prefix: str = ""
    default_engine: str | None = None

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str | None:
        """
        Returns:
            str | None: The capitalized engine name, None if neither configured nor defaulted.
        """
        engine = self.helper_config.get_string_val(f"{self.kind.upper()}_ENGINE", default=self.default_engine or "")
        return engine.strip().lower().capitalize() or None

    def _without_engine(self) -> Any:
        raise ValueError(f"{self.kind.upper()}_ENGINE is not set.")

    def _initialize_client(self) -> Any:
        """
        Raises:
            ValueError: If the configured engine is unsupported.
        """
        engine = self._get_engine_from_env()
        if engine is None:
            return self._without_engine()

        class_name = f"{self.class_prefix}{engine}"
        try:
            module = __import__(f"shared.clients.{self.kind}.{engine.lower()}.{class_name}", fromlist=[class_name])
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.kind} engine specified: '{engine}'. Error: {e}")

        self.logging.debug("Instantiated %s client for engine: %s", self.kind, engine)
        return client_class(helper_config=self.helper_config)

    def get_client(self) -> Any:
        return self.client
