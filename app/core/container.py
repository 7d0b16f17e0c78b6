"""
Dependency container.

Capabilities are bound to string keys, either as an already built instance
or as a factory ``factory(container) -> instance`` run lazily on first
resolution and cached afterwards.
"""
import threading
from typing import Any, Callable, Dict, List

from app.core.utils import LoggerMixin


Factory = Callable[["Container"], Any]


class ResolutionError(Exception):
    """A capability could not be resolved."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(message)


class DependencyNotRegisteredError(ResolutionError):
    def __init__(self, key: str):
        super().__init__(key, f"No instance or factory registered for '{key}'")


class CircularDependencyError(ResolutionError):
    def __init__(self, key: str, chain: List[str]):
        self.chain = chain
        path = " -> ".join(chain + [key])
        super().__init__(key, f"Circular dependency detected: {path}")


class Container(LoggerMixin):
    """
    Thread-safe, string-keyed dependency container.

    Resolution holds a re-entrant lock, so a factory may resolve its own
    dependencies while no other thread can build the same capability twice.
    The keys currently being built are tracked per thread; re-entering one
    of them is a circular dependency.
    """

    def __init__(self):
        super().__init__()
        self._instances: Dict[str, Any] = {}
        self._factories: Dict[str, Factory] = {}
        self._lock = threading.RLock()
        self._local = threading.local()

    def _resolving(self) -> List[str]:
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = []
            self._local.stack = stack
        return stack

    def register(self, key: str, instance: Any) -> None:
        """Bind ``key`` to an already constructed instance."""
        with self._lock:
            self._instances[key] = instance

    def register_factory(self, key: str, factory: Factory) -> None:
        """Bind ``key`` to a lazy factory, dropping any cached instance."""
        with self._lock:
            self._factories[key] = factory
            self._instances.pop(key, None)

    def is_registered(self, key: str) -> bool:
        with self._lock:
            return key in self._instances or key in self._factories

    def resolve(self, key: str) -> Any:
        """
        Return the instance bound to ``key``, building it if needed.

        Raises:
            CircularDependencyError: ``key`` is already being built on this thread
            DependencyNotRegisteredError: nothing is bound to ``key``
            ResolutionError: the factory returned None
        """
        with self._lock:
            if key in self._instances:
                return self._instances[key]

            stack = self._resolving()
            if key in stack:
                self.log_error(
                    {
                        "event_type": "circular_dependency",
                        "key": key,
                        "chain": list(stack),
                    }
                )
                raise CircularDependencyError(key, list(stack))

            factory = self._factories.get(key)
            if factory is None:
                self.log_error({"event_type": "dependency_not_registered", "key": key})
                raise DependencyNotRegisteredError(key)

            stack.append(key)
            try:
                instance = factory(self)
            finally:
                stack.pop()

            if instance is None:
                raise ResolutionError(key, f"Factory for '{key}' returned None")

            self._instances[key] = instance
            self.log_debug({"event_type": "dependency_resolved", "key": key})
            return instance

    def clear(self) -> None:
        """Drop every binding and cached instance."""
        with self._lock:
            self._instances.clear()
            self._factories.clear()
