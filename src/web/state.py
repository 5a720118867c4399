import threading

from .services.alert_service import AlertBroadcaster


class SharedState:
    """
    Singleton class to share the runtime context between the application
    factory and the FastAPI routes.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.context = None
                    cls._instance.config = None
                    cls._instance.config_lock = threading.Lock()
                    cls._instance.alerts = AlertBroadcaster()
        return cls._instance

    def set_context(self, ctx):
        """Bind the runtime context (session, file analyzer, config)."""
        self.context = ctx
        self.set_config(ctx.config)

    def get_context(self):
        if self.context is None:
            raise RuntimeError("Runtime context not initialized")
        return self.context

    def set_config(self, config):
        with self.config_lock:
            self.config = config

    def get_config_copy(self):
        with self.config_lock:
            if self.config is None:
                return None
            # shallow copy of dict tree is fine for read-mostly usage
            return dict(self.config)


# Global instance
state = SharedState()
