"""
Tests for the service container and the process-wide registry.
"""

import threading
import time

import pytest

import flickering.container as container_module
from flickering.cache import FileStore
from flickering.config.loader import FileLoader
from flickering.config.repository import Repository
from flickering.config.settings import FlickeringSettings
from flickering.container import (
    ServiceContainer, ServiceScope, ServiceDescriptor,
    build_container, get_container, set_container, reset_container, resolve
)
from flickering.errors import DependencyResolutionError, ServiceNotFoundError
from flickering.filesystem import Filesystem
from flickering.request import Request


class SampleService:
    """Simple test service."""

    def __init__(self, value: str = "test"):
        self.value = value
        self.closed = False

    def close(self):
        self.closed = True


class SampleServiceWithDependency:
    """Test service with a dependency."""

    def __init__(self, dependency: SampleService):
        self.dependency = dependency


def sample_factory(container) -> SampleService:
    return SampleService("factory_created")


class TestServiceContainer:
    """Test the ServiceContainer class."""

    @pytest.fixture
    def container(self):
        return ServiceContainer()

    def test_register_singleton_with_type(self, container):
        result = container.register_singleton("sample", SampleService)
        assert result is container  # Should return self for chaining
        assert container.is_registered("sample")

    def test_register_singleton_with_instance(self, container):
        instance = SampleService("instance")
        container.register_singleton("sample", instance=instance)

        assert container.is_resolved("sample")
        assert container.get_service("sample") is instance

    def test_register_transient(self, container):
        container.register_transient("sample", SampleService)
        assert container.is_registered("sample")

    def test_register_transient_takes_no_instance(self, container):
        with pytest.raises(TypeError):
            container.register_transient("sample", instance=SampleService())

        assert not container.is_registered("sample")

    def test_register_without_source(self, container):
        with pytest.raises(ValueError, match="needs a type, a factory or an instance"):
            container.register_singleton("sample")

    def test_get_singleton_service(self, container):
        container.register_singleton("sample", SampleService)

        service1 = container.get_service("sample")
        service2 = container.make("sample")
        service3 = container["sample"]

        assert isinstance(service1, SampleService)
        assert service1 is service2 is service3

    def test_get_transient_service(self, container):
        container.register_transient("sample", SampleService)

        service1 = container.get_service("sample")
        service2 = container.get_service("sample")

        assert service1 is not service2

    def test_factory_receives_container(self, container):
        container.register_singleton("sample", SampleService)
        container.register_singleton(
            "dependent",
            factory=lambda c: SampleServiceWithDependency(c["sample"])
        )

        service = container.get_service("dependent")

        assert service.dependency is container.get_service("sample")

    def test_sync_factory(self, container):
        container.register_singleton("sample", factory=sample_factory)
        assert container.get_service("sample").value == "factory_created"

    def test_get_service_not_registered(self, container):
        with pytest.raises(ServiceNotFoundError, match="Service 'missing' is not registered"):
            container.get_service("missing")

    def test_factory_failure_is_wrapped(self, container):
        def broken(c):
            raise PermissionError("cache directory is read-only")

        container.register_singleton("broken", factory=broken)

        with pytest.raises(DependencyResolutionError) as exc_info:
            container.get_service("broken")

        assert exc_info.value.details["service"] == "broken"
        assert isinstance(exc_info.value.original_error, PermissionError)
        assert not container.is_resolved("broken")

    def test_nested_failure_keeps_innermost_service(self, container):
        def broken(c):
            raise OSError("disk gone")

        container.register_singleton("inner", factory=broken)
        container.register_singleton("outer", factory=lambda c: c["inner"])

        with pytest.raises(DependencyResolutionError) as exc_info:
            container.get_service("outer")

        assert exc_info.value.details["service"] == "inner"

    def test_reregistering_drops_built_instance(self, container):
        container.register_singleton("sample", SampleService)
        first = container.get_service("sample")

        container.register_singleton("sample", factory=sample_factory)

        assert container.get_service("sample") is not first

    def test_concurrent_first_use_builds_once(self, container):
        built = []

        def slow_factory(c):
            time.sleep(0.05)
            built.append(1)
            return SampleService()

        container.register_singleton("slow", factory=slow_factory)

        results = []
        threads = [
            threading.Thread(target=lambda: results.append(container.get_service("slow")))
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(built) == 1
        assert len(results) == 8
        assert all(result is results[0] for result in results)

    def test_get_registered_services(self, container):
        assert container.get_registered_services() == []

        container.register_singleton("a", SampleService)
        container.register_transient("b", SampleService)

        assert container.get_registered_services() == ["a", "b"]

    def test_clear(self, container):
        instance = SampleService()
        container.register_singleton("sample", instance=instance)
        container.register_transient("other", SampleService)

        container.clear()

        assert not container.is_registered("sample")
        assert not container.is_registered("other")
        assert instance.closed  # Should call close

    def test_close_keeps_registrations(self, container):
        instance = SampleService()
        container.register_singleton("sample", instance=instance)
        container.register_singleton("built", SampleService)
        built = container.get_service("built")

        container.close()

        assert instance.closed
        assert built.closed
        assert container.get_service("sample") is instance
        assert not container.is_resolved("built")
        assert container.get_service("built") is not built

    def test_get_stats(self, container):
        container.register_singleton("a", SampleService)
        container.register_singleton("b", instance=SampleService())
        container.register_transient("c", SampleService)

        stats = container.get_stats()

        assert stats['registered_services'] == 3
        assert stats['singleton_instances'] == 1
        assert stats['scope_distribution']['singleton'] == 2
        assert stats['scope_distribution']['transient'] == 1

    def test_descriptor_defaults(self):
        descriptor = ServiceDescriptor(name="sample", implementation_type=SampleService)
        assert descriptor.scope == ServiceScope.SINGLETON
        assert descriptor.factory is None


class TestBuildContainer:
    """Test the wiring of the default services."""

    def test_registration_order(self, settings):
        container = build_container(settings)

        assert container.get_registered_services() == [
            "settings", "filesystem", "config-loader", "config", "cache", "request"
        ]

    def test_services_are_lazy(self, settings):
        container = build_container(settings)

        assert container.get_stats()['singleton_instances'] == 1  # settings only
        assert not settings.cache_dir.exists()

    def test_service_types(self, container, settings):
        assert container["settings"] is settings
        assert isinstance(container["filesystem"], Filesystem)
        assert isinstance(container["config-loader"], FileLoader)
        assert isinstance(container["config"], Repository)
        assert isinstance(container["cache"], FileStore)
        assert isinstance(container["request"], Request)

    def test_services_share_filesystem_and_paths(self, container, settings):
        loader = container["config-loader"]
        cache = container["cache"]

        assert loader.filesystem is container["filesystem"]
        assert cache.filesystem is container["filesystem"]
        assert loader.root_dir == settings.root_dir
        assert cache.directory == settings.root_dir / "cache"
        assert cache.directory.is_dir()

    def test_config_is_scoped_to_config_group(self, container, settings):
        config = container["config"]

        assert config.group == "config"
        assert config.loader is container["config-loader"]
        assert config.environment == settings.environment

    def test_request_uses_settings(self, root_dir):
        settings = FlickeringSettings(
            root_dir=root_dir, api_endpoint="https://example.test/rest", timeout=3, _env_file=None
        )
        request = build_container(settings)["request"]

        assert request.endpoint == "https://example.test/rest"
        assert request.timeout == 3

    def test_unwritable_cache_directory(self, settings):
        settings.cache_dir.write_text("not a directory")
        container = build_container(settings)

        with pytest.raises(DependencyResolutionError) as exc_info:
            container.get_service("cache")

        assert exc_info.value.details["service"] == "cache"


class TestGlobalFunctions:
    """Test the process-wide registry."""

    def test_get_container(self, monkeypatch, root_dir):
        monkeypatch.setenv("FLICKERING_ROOT_DIR", str(root_dir))

        container = get_container()
        assert isinstance(container, ServiceContainer)
        assert container["settings"].root_dir == root_dir

        # Should return same instance
        assert get_container() is container

    def test_set_container(self):
        custom_container = ServiceContainer()
        set_container(custom_container)

        assert get_container() is custom_container

    def test_reset_container(self, container):
        set_container(container)
        reset_container()

        assert get_container() is not container

    def test_replaced_container_is_closed(self):
        first = ServiceContainer().register_singleton("sample", SampleService)
        service = first.get_service("sample")

        set_container(first)
        set_container(first)
        assert not service.closed

        set_container(ServiceContainer())
        assert service.closed
        assert first.is_registered("sample")

    def test_reset_closes_open_connections(self, container):
        set_container(container)
        request = resolve("request")
        assert request.client is not None

        reset_container()

        assert request._client is None
        assert not container.is_resolved("request")

    def test_resolve_without_name_returns_container(self, container):
        set_container(container)
        assert resolve() is container

    def test_resolve_is_idempotent(self, container):
        set_container(container)

        for name in ("filesystem", "config-loader", "config", "cache", "settings"):
            assert resolve(name) is resolve(name)
            assert resolve(name) is container.get_service(name)

    def test_concurrent_first_lookup_builds_one_container(self, monkeypatch, settings):
        builds = []
        real_build = container_module.build_container

        def slow_build(settings_arg=None):
            time.sleep(0.05)
            builds.append(1)
            return real_build(settings)

        monkeypatch.setattr(container_module, "build_container", slow_build)

        seen = []
        threads = [threading.Thread(target=lambda: seen.append(get_container())) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(builds) == 1
        assert all(found is seen[0] for found in seen)
