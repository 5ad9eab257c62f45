"""Tests for ServiceRegistry registration, lookup and cleanup."""

from __future__ import annotations

from typing import Any

import pytest

from liteinject.contracts import Lazy
from liteinject.entries import MultiServiceEntry, ServiceEntry
from liteinject.exceptions import MismatchedMultipleRegistrationError
from liteinject.injector import Injector
from liteinject.registry import ServiceRegistry
from liteinject.sources import (
    DEFAULT_SOURCE_TYPES,
    CollectionServiceSource,
    LazyServiceSource,
    ServiceSource,
)


class Plugin:
    def __init__(self, name: str = "plugin") -> None:
        self.name = name


class Closable:
    def __init__(self, log: list[str], name: str) -> None:
        self.log = log
        self.name = name

    def close(self) -> None:
        self.log.append(self.name)


class MarkerSource(ServiceSource):
    def is_match(self, contract_type: Any) -> bool:
        return contract_type == "marker"

    def get_service_descriptors(self, injector: Injector, contract_type: Any) -> list[Any]:
        return []

    def get_service(self, injector: Injector, contract_type: Any) -> Any:
        return "from-marker"


class TestRegisterService:
    def test_single_registration_last_writer_wins(self) -> None:
        registry = ServiceRegistry()
        first = ServiceEntry(Plugin, instance=Plugin("first"))
        second = ServiceEntry(Plugin, instance=Plugin("second"))

        registry.register_service(first).register_service(second)

        assert registry.try_get_value(Plugin) is second

    def test_multiple_registrations_are_aggregated(self) -> None:
        registry = ServiceRegistry()
        entries = [ServiceEntry(Plugin, instance=Plugin(str(i)), allow_multiple=True) for i in range(3)]
        for entry in entries:
            registry.register_service(entry)

        value = registry.try_get_value(Plugin)

        assert isinstance(value, MultiServiceEntry)
        assert list(value) == entries

    def test_single_after_multiple_raises(self) -> None:
        registry = ServiceRegistry()
        registry.register_service(ServiceEntry(Plugin, instance=Plugin(), allow_multiple=True))

        with pytest.raises(MismatchedMultipleRegistrationError) as exc_info:
            registry.register_service(ServiceEntry(Plugin, instance=Plugin()))

        assert exc_info.value.contract_type is Plugin

    def test_multiple_after_single_raises(self) -> None:
        registry = ServiceRegistry()
        registry.register_service(ServiceEntry(Plugin, instance=Plugin()))

        with pytest.raises(MismatchedMultipleRegistrationError):
            registry.register_service(ServiceEntry(Plugin, instance=Plugin(), allow_multiple=True))

    def test_contract_types(self) -> None:
        registry = ServiceRegistry()
        registry.register_service(ServiceEntry(Plugin, instance=Plugin()))

        assert registry.contract_types == (Plugin,)


class TestLookup:
    def test_try_get_value_miss_returns_none(self) -> None:
        assert ServiceRegistry().try_get_value(Plugin) is None

    def test_is_registered_direct(self) -> None:
        registry = ServiceRegistry()
        registry.register_service(ServiceEntry(Plugin, instance=Plugin()))

        assert registry.is_registered(Plugin)
        assert not registry.is_registered(str)

    def test_is_registered_through_source(self, registry: ServiceRegistry) -> None:
        assert registry.is_registered(list[Plugin])
        assert not registry.is_registered(Plugin)

    def test_unhashable_contract_is_a_miss(self) -> None:
        registry = ServiceRegistry()

        assert registry.try_get_value([Plugin]) is None  # type: ignore[arg-type]


class TestSources:
    def test_default_sources_order(self, registry: ServiceRegistry) -> None:
        assert tuple(type(source) for source in registry.sources) == DEFAULT_SOURCE_TYPES

    def test_empty_registry_has_no_sources(self) -> None:
        assert ServiceRegistry().sources == ()

    def test_find_source_returns_first_match(self, registry: ServiceRegistry) -> None:
        assert isinstance(registry.find_source(Lazy[Plugin]), LazyServiceSource)
        assert isinstance(registry.find_source(list[Plugin]), CollectionServiceSource)
        assert registry.find_source(Plugin) is None

    def test_register_source_appends(self) -> None:
        registry = ServiceRegistry()
        source = MarkerSource(registry)

        registry.register_source(source)

        assert registry.sources == (source,)
        assert registry.find_source("marker") is source
        assert source.registry is registry


class TestGetServiceDescriptors:
    def test_direct_entries_in_order(self, injector: Injector) -> None:
        registry = injector.registry
        plugins = [Plugin("a"), Plugin("b")]
        for plugin in plugins:
            registry.register_service(ServiceEntry(Plugin, instance=plugin, allow_multiple=True))

        descriptors = registry.get_service_descriptors(injector, Plugin)

        assert [descriptor.factory() for descriptor in descriptors] == plugins
        assert [descriptor.entry for descriptor in descriptors] == list(registry.try_get_value(Plugin))  # type: ignore[arg-type]

    def test_nothing_registered_yields_empty_list(self, injector: Injector) -> None:
        assert injector.registry.get_service_descriptors(injector, Plugin) == []

    def test_source_descriptors(self, injector: Injector) -> None:
        injector.registry.register_service(ServiceEntry(Plugin, instance=Plugin()))

        descriptors = injector.registry.get_service_descriptors(injector, list[Plugin])

        assert len(descriptors) == 1
        assert descriptors[0].entry is None
        assert descriptors[0].metadata == {}


class TestClose:
    def test_closes_owned_values_in_reverse_order(self, injector: Injector) -> None:
        log: list[str] = []
        registry = injector.registry
        registry.register_service(ServiceEntry(str, instance=Closable(log, "first")))
        registry.register_service(ServiceEntry(int, instance=Closable(log, "second")))
        registry.register_service(
            ServiceEntry(float, instance=Closable(log, "external"), externally_owned=True),
        )

        registry.close()
        registry.close()

        assert log == ["second", "first"]
        assert registry.closed
