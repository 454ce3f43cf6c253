from shared.helper.HelperConfig import HelperConfig
from shared.clients.filehost.FileHostClientInterface import FileHostClientInterface


class FileHostClientManager:
    """Manager class to instantiate the configured file host client."""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the file host engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Gdrive").
        """
        engine = self.helper_config.get_string_val("FILEHOST_ENGINE", default="gdrive")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> FileHostClientInterface:
        """Instantiate the file host client for the configured engine.

        Returns:
            FileHostClientInterface: The instantiated client.

        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        class_name = f"FileHostClient{engine}"
        try:
            module = __import__(
                f"shared.clients.filehost.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError("Unsupported file host engine '%s'. Error: %s" % (engine, e))
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated file host client for engine: %s", engine)
        return client

    def get_client(self) -> FileHostClientInterface:
        """Return the instantiated file host client."""
        return self.client
