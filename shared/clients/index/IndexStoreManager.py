from shared.helper.HelperConfig import HelperConfig
from shared.clients.index.IndexStoreInterface import IndexStoreInterface


class IndexStoreManager:
    """
    Instantiates the index storage engine named by INDEX_ENGINE.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.store = self._initialize_store()

    def _get_engine_from_env(self) -> str:
        engine = self.helper_config.get_string_val("INDEX_ENGINE", default="memory")
        return engine.strip().lower().capitalize()

    def _initialize_store(self) -> IndexStoreInterface:
        """
        Imports shared.clients.index.{engine}.IndexStore{Engine} and instantiates it.

        Raises:
            ValueError: If the engine is not supported.
        """
        engine = self._get_engine_from_env()
        class_name = f"IndexStore{engine}"
        try:
            module = __import__(
                f"shared.clients.index.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            store_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported Index engine specified: '{engine}'. Error: {e}")

        store = store_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated Index store for engine: %s", engine)
        return store

    def get_store(self) -> IndexStoreInterface:
        return self.store
