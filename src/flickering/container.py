"""
Dependency injection container for Flickering.

This module provides the service container that supplies settings,
filesystem access, configuration and the cache to every client, and the
process-wide registry built lazily on first use.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .cache import FileStore
from .config.loader import FileLoader
from .config.repository import Repository
from .config.settings import FlickeringSettings
from .errors import DependencyResolutionError, FlickeringError, ServiceNotFoundError
from .filesystem import Filesystem
from .request import Request

logger = logging.getLogger(__name__)

Factory = Callable[["ServiceContainer"], Any]


class ServiceScope(Enum):
    """Service lifetime scopes."""
    SINGLETON = "singleton"
    TRANSIENT = "transient"


@dataclass
class ServiceDescriptor:
    """Describes how a service should be created and managed."""
    name: str
    implementation_type: Optional[type] = None
    factory: Optional[Factory] = None
    instance: Any = None
    scope: ServiceScope = ServiceScope.SINGLETON


class ServiceContainer:
    """Named-service container.

    Factories receive the container so they can resolve their own
    dependencies. Building is serialized by a re-entrant lock, so a
    singleton is constructed exactly once even under concurrent first use.
    """

    def __init__(self):
        self._services: Dict[str, ServiceDescriptor] = {}
        self._instances: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def register_singleton(
        self,
        name: str,
        implementation_type: Optional[type] = None,
        factory: Optional[Factory] = None,
        instance: Any = None
    ) -> 'ServiceContainer':
        """Register a service built once and shared afterwards.

        Args:
            name: Service name
            implementation_type: Class instantiated without arguments
            factory: Callable receiving the container
            instance: Pre-created instance

        Returns:
            Self for method chaining
        """
        return self._register_service(
            name,
            implementation_type,
            factory,
            instance,
            ServiceScope.SINGLETON
        )

    def register_transient(
        self,
        name: str,
        implementation_type: Optional[type] = None,
        factory: Optional[Factory] = None
    ) -> 'ServiceContainer':
        """Register a service built anew on every lookup.

        Returns:
            Self for method chaining
        """
        return self._register_service(
            name,
            implementation_type,
            factory,
            None,
            ServiceScope.TRANSIENT
        )

    def _register_service(
        self,
        name: str,
        implementation_type: Optional[type],
        factory: Optional[Factory],
        instance: Any,
        scope: ServiceScope
    ) -> 'ServiceContainer':
        if implementation_type is None and factory is None and instance is None:
            raise ValueError(f"Service '{name}' needs a type, a factory or an instance")

        descriptor = ServiceDescriptor(
            name=name,
            implementation_type=implementation_type,
            factory=factory,
            instance=instance,
            scope=scope
        )

        with self._lock:
            self._services[name] = descriptor
            self._instances.pop(name, None)
            if instance is not None:
                self._instances[name] = instance

        logger.debug(f"Registered service: {name} ({scope.value})")
        return self

    def get_service(self, name: str) -> Any:
        """Get a service instance.

        Raises:
            ServiceNotFoundError: If the service is not registered
            DependencyResolutionError: If the service cannot be built
        """
        with self._lock:
            descriptor = self._services.get(name)
            if descriptor is None:
                raise ServiceNotFoundError(name)

            if descriptor.scope == ServiceScope.TRANSIENT:
                return self._create_instance(descriptor)

            if name not in self._instances:
                self._instances[name] = self._create_instance(descriptor)
            return self._instances[name]

    def make(self, name: str) -> Any:
        return self.get_service(name)

    def __getitem__(self, name: str) -> Any:
        return self.get_service(name)

    def _create_instance(self, descriptor: ServiceDescriptor) -> Any:
        try:
            if descriptor.factory is not None:
                instance = descriptor.factory(self)
            else:
                instance = descriptor.implementation_type()
        except FlickeringError:
            raise
        except Exception as e:
            logger.error(f"Failed to build service '{descriptor.name}': {e}")
            raise DependencyResolutionError(
                f"Failed to build service '{descriptor.name}': {e}",
                service=descriptor.name,
                original_error=e
            ) from e

        logger.debug(f"Built service: {descriptor.name}")
        return instance

    def is_registered(self, name: str) -> bool:
        return name in self._services

    def is_resolved(self, name: str) -> bool:
        """Check if a singleton has already been built."""
        return name in self._instances

    def get_registered_services(self) -> List[str]:
        """Registered service names, in registration order."""
        return list(self._services.keys())

    def close(self) -> None:
        """Close built instances, keeping the registrations.

        Instances built by the container are forgotten and rebuilt on the
        next lookup. Pre-registered instances stay registered.
        """
        with self._lock:
            for name, instance in list(self._instances.items()):
                close = getattr(instance, "close", None)
                if callable(close):
                    try:
                        close()
                    except Exception as e:
                        logger.error(f"Error closing service '{name}': {e}")

                if self._services[name].instance is None:
                    del self._instances[name]

    def clear(self) -> None:
        """Clear all registered services and close built instances."""
        with self._lock:
            self.close()
            self._services.clear()
            self._instances.clear()

    def get_stats(self) -> Dict[str, Any]:
        """Get container statistics."""
        scope_counts: Dict[str, int] = {}
        for descriptor in self._services.values():
            scope = descriptor.scope.value
            scope_counts[scope] = scope_counts.get(scope, 0) + 1

        return {
            'registered_services': len(self._services),
            'singleton_instances': len(self._instances),
            'scope_distribution': scope_counts
        }


def build_container(settings: Optional[FlickeringSettings] = None) -> ServiceContainer:
    """Wire the services every client relies on.

    Registration order is fixed: settings, filesystem, config loader,
    config repository, cache store, request. Services are built lazily on
    first lookup.
    """
    settings = settings or FlickeringSettings()
    logging.getLogger("flickering").setLevel(settings.log_level)

    container = ServiceContainer()
    container.register_singleton("settings", instance=settings)
    container.register_singleton("filesystem", Filesystem)
    container.register_singleton(
        "config-loader",
        factory=lambda c: FileLoader(c["filesystem"], c["settings"].root_dir)
    )
    container.register_singleton(
        "config",
        factory=lambda c: Repository(c["config-loader"], "config", c["settings"].environment)
    )
    container.register_singleton(
        "cache",
        factory=lambda c: FileStore(c["filesystem"], c["settings"].cache_dir)
    )
    container.register_singleton(
        "request",
        factory=lambda c: Request(c["settings"].api_endpoint, timeout=c["settings"].timeout)
    )

    logger.info(f"Built service container rooted at {settings.root_dir}")
    return container


# Global container instance
_global_container: Optional[ServiceContainer] = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """Get the process-wide container, building it on first use."""
    global _global_container
    if _global_container is None:
        with _global_lock:
            if _global_container is None:
                _global_container = build_container()
    return _global_container


def _replace_container(container: Optional[ServiceContainer]) -> None:
    global _global_container
    with _global_lock:
        previous, _global_container = _global_container, container

    if previous is not None and previous is not container:
        previous.close()


def set_container(container: ServiceContainer) -> None:
    """Install a container as the process-wide one.

    The container it replaces is closed, which releases open connections.
    """
    _replace_container(container)


def reset_container() -> None:
    """Close and drop the process-wide container so the next lookup rebuilds it."""
    _replace_container(None)


def resolve(name: Optional[str] = None) -> Any:
    """Resolve a service from the process-wide container.

    Args:
        name: Service name; the container itself when omitted

    Returns:
        The named service, or the container
    """
    container = get_container()
    if name:
        return container.get_service(name)
    return container
