"""Integration tests for complete wiring scenarios."""

from typing import Dict, List

import pytest

from corewire import (
    AmbiguousDependencyError,
    Cardinality,
    ComponentRecord,
    Container,
    ContainerPhase,
    DependencyRequirement,
    IContainerAware,
    INameAware,
    Provider,
    Scope,
    UnresolvedDependencyError,
    is_resolved,
)
from corewire.infrastructure.testing import TestContainer


class ServiceX:
    pass


class ServiceY:
    pass


class Cache:
    pass


class MemoryCache(Cache):
    pass


class DiskCache(Cache):
    pass


class Repo:
    pass


class UserRepoImpl(Repo):
    pass


class DataSource:
    def __init__(self):
        self.url = "postgres://localhost/app"


class Plugin:
    pass


class AuditPlugin(Plugin):
    pass


class MetricsPlugin(Plugin):
    pass


class PluginHost:
    def __init__(self, plugins: List[Plugin], by_name: Dict[str, Plugin]):
        self.plugins = plugins
        self.by_name = by_name


class RequestHandler:
    created = 0

    def __init__(self):
        RequestHandler.created += 1


class Dispatcher:
    def __init__(self):
        self.handlers = None


class Report:
    built = 0

    def __init__(self):
        Report.built += 1

    def render(self):
        return "report"


class Dashboard:
    pass


class TestWiringScenarios:
    """End-to-end scenarios over the public container API."""

    def test_service_x_and_y_field_cycle(self):
        """Test that ServiceX.y.x is ServiceX after refresh."""
        container = Container()
        container.register_component(
            ComponentRecord(
                name="ServiceX",
                declared_type=ServiceX,
                field_injections={"y": DependencyRequirement(required_type=ServiceY)},
            )
        )
        container.register_component(
            ComponentRecord(
                name="ServiceY",
                declared_type=ServiceY,
                field_injections={"x": DependencyRequirement(required_type=ServiceX)},
            )
        )
        container.refresh()

        x = container.get("ServiceX")

        assert x.y.x is x
        assert container.get(ServiceY) is x.y

    def test_cache_tier_qualifier(self):
        """Test that a tier qualifier picks exactly the matching cache."""
        container = Container()
        container.register_component(ComponentRecord(name="memory", declared_type=MemoryCache, qualifiers={"tier": "fast"}))
        container.register_component(ComponentRecord(name="disk", declared_type=DiskCache, qualifiers={"tier": "slow"}))
        container.refresh()

        fast = container.get(Cache, qualifier={"tier": "fast"})

        assert fast is container.get("memory")
        assert container.get(Cache, qualifier={"tier": "slow"}) is container.get("disk")

    def test_repo_template_merge(self):
        """Test that a child of an abstract template inherits its field default and is concrete."""
        container = Container()
        container.register_component(
            ComponentRecord(name="Repo", is_abstract_template=True, field_values={"page_size": 50})
        )
        container.register_component(
            ComponentRecord(name="UserRepo", parent_template="Repo", declared_type=UserRepoImpl)
        )
        container.refresh()

        record = container.registry.lookup("UserRepo")
        user_repo = container.get("UserRepo")

        assert record.field_values == {"page_size": 50}
        assert not record.is_abstract_template
        assert isinstance(user_repo, UserRepoImpl)
        assert user_repo.page_size == 50
        assert container.get(Repo) is user_repo

    def test_two_unqualified_registrations_are_ambiguous(self):
        """Test that two plain registrations of one type never resolve silently."""
        container = Container()
        container.register_singletons({"memory": MemoryCache, "disk": DiskCache})
        container.refresh()

        with pytest.raises(AmbiguousDependencyError):
            container.get(Cache)

    def test_qualifier_never_falls_through_to_primary(self):
        """Test that a qualifier with no match fails even though a primary exists."""
        container = Container()
        container.register_component(
            ComponentRecord(name="memory", declared_type=MemoryCache, qualifiers={"tier": "fast"}, is_primary=True)
        )
        container.register_component(ComponentRecord(name="disk", declared_type=DiskCache))
        container.refresh()

        assert container.get(Cache) is container.get("memory")
        with pytest.raises(UnresolvedDependencyError):
            container.get(Cache, qualifier={"tier": "warm"})

    def test_destroy_runs_dependants_first(self):
        """Test that a component is destroyed before the dependency it required."""
        events = []

        class Pool:
            def shutdown(self):
                events.append("pool")

        class Repository:
            def __init__(self, pool: Pool):
                self.pool = pool

            def flush(self):
                events.append("repository")

        container = Container()
        container.register_component(ComponentRecord(name="repository", declared_type=Repository, destroy_hook_names=("flush",)))
        container.register_component(ComponentRecord(name="pool", declared_type=Pool, destroy_hook_names=("shutdown",)))
        container.refresh()
        container.close()

        assert events == ["repository", "pool"]

    def test_lazy_dependency_is_not_built_with_enclosing_singleton(self):
        """Test that building a singleton does not build its lazy dependency."""
        Report.built = 0
        container = Container()
        container.register_component(ComponentRecord(name="report", declared_type=Report, scope=Scope.DEFERRED))
        container.register_component(
            ComponentRecord(
                name="dashboard",
                declared_type=Dashboard,
                field_injections={"report": DependencyRequirement(required_type=Report, lazy=True)},
            )
        )
        container.refresh()

        dashboard = container.get("dashboard")

        assert Report.built == 0
        assert not is_resolved(dashboard.report)
        assert dashboard.report.render() == "report"
        assert Report.built == 1


class TestCompositeWiring:
    """Scenarios combining several container features."""

    def test_collections_and_maps_are_injected(self):
        """Test constructor injection of ordered collections and named maps."""
        container = Container()
        container.register_component(ComponentRecord(name="metrics", declared_type=MetricsPlugin))
        container.register_component(ComponentRecord(name="audit", declared_type=AuditPlugin, order=1))
        container.register_singletons({"host": PluginHost})
        container.refresh()

        host = container.get(PluginHost)

        assert [type(plugin) for plugin in host.plugins] == [AuditPlugin, MetricsPlugin]
        assert host.by_name == {"audit": container.get("audit"), "metrics": container.get("metrics")}

    def test_provider_gives_singleton_fresh_transients(self):
        """Test that a singleton can obtain a new transient per call through a provider."""
        RequestHandler.created = 0
        container = Container()
        container.register_transients({"handler": RequestHandler})
        container.register_component(
            ComponentRecord(
                name="dispatcher",
                declared_type=Dispatcher,
                field_injections={"handlers": DependencyRequirement(required_type=RequestHandler, provider=True)},
            )
        )
        container.refresh()

        dispatcher = container.get(Dispatcher)

        assert isinstance(dispatcher.handlers, Provider)
        assert RequestHandler.created == 0
        assert dispatcher.handlers() is not dispatcher.handlers()
        assert RequestHandler.created == 2

    def test_field_values_and_init_hooks(self):
        """Test that literal values are set before init hooks run."""

        class Connection:
            def open(self):
                self.opened_with = self.url

        container = Container()
        container.register_component(
            ComponentRecord(
                name="connection",
                declared_type=Connection,
                field_values={"url": "sqlite://"},
                init_hook_names=("open",),
            )
        )
        container.refresh()

        assert container.get("connection").opened_with == "sqlite://"

    def test_aware_component_receives_container_and_name(self):
        """Test that capability interfaces are honoured during wiring."""

        class Registry(IContainerAware, INameAware):
            def set_container(self, container):
                self.container = container

            def set_component_name(self, name):
                self.component_name = name

        container = Container()
        container.register_singletons({"plugin_registry": Registry})
        container.refresh()

        registry = container.get("plugin_registry")

        assert registry.container is container
        assert registry.component_name == "plugin_registry"

    def test_optional_field_without_candidate_is_skipped(self):
        """Test that an optional field without candidates keeps the class default."""

        class Notifier:
            source = None

        container = Container()
        container.register_component(
            ComponentRecord(
                name="notifier",
                declared_type=Notifier,
                field_injections={
                    "source": DependencyRequirement(required_type=DataSource, cardinality=Cardinality.OPTIONAL_ONE)
                },
            )
        )
        container.refresh()

        assert container.get("notifier").source is None

    def test_optional_lazy_field_without_candidate_is_skipped(self):
        """Test that an optional lazy field without candidates keeps the class default."""

        class Mailer:
            source = None

        container = Container()
        container.register_component(
            ComponentRecord(
                name="mailer",
                declared_type=Mailer,
                field_injections={"source": DependencyRequirement(required_type=DataSource, lazy=True, required=False)},
            )
        )
        container.refresh()

        assert container.get("mailer").source is None

    def test_independent_containers_share_nothing(self):
        """Test that two containers build their own singletons."""
        first = Container()
        second = Container()
        first.register_singletons({"source": DataSource})
        second.register_singletons({"source": DataSource})
        first.refresh()
        second.refresh()

        assert first.get("source") is not second.get("source")
        first.close()
        assert second.phase == ContainerPhase.ACTIVE
        assert isinstance(second.get("source"), DataSource)

    def test_test_container_overrides_parent_wiring(self):
        """Test that a test container swaps a dependency without touching the parent."""

        class FakeSource(DataSource):
            pass

        class Reader:
            def __init__(self, source: DataSource):
                self.source = source

        parent = Container()
        parent.register_singletons({"source": DataSource, "reader": Reader})

        with TestContainer(parent) as test_container:
            fake = FakeSource()
            test_container.mock_singleton("source", fake)
            test_container.refresh()

            assert test_container.get(Reader).source is fake

        assert test_container.phase == ContainerPhase.CLOSED
        assert parent.phase == ContainerPhase.UNSTARTED
