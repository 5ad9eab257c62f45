"""Tests for thread safety of singleton production."""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from liteinject.container import Container
from liteinject.contracts import Lazy
from liteinject.entries import Lifetime


class ServiceA:
    pass


class ServiceB:
    def __init__(self, a: ServiceA) -> None:
        self.a = a


class TestConcurrentResolution:
    def test_singleton_factory_called_once(self, container: Container) -> None:
        calls: list[int] = []
        barrier = threading.Barrier(10)

        def factory(_injector: Any) -> ServiceA:
            calls.append(1)
            return ServiceA()

        container.add_factory(factory, provides=ServiceA)

        def resolve_service() -> ServiceA:
            barrier.wait()
            return container.resolve(ServiceA)

        with ThreadPoolExecutor(max_workers=10) as executor:
            futures = [executor.submit(resolve_service) for _ in range(10)]
            results = [future.result() for future in futures]

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_concurrent_singleton_resolution_same_instance(self, container: Container) -> None:
        container.add_concrete(ServiceA)
        container.add_concrete(ServiceB)
        results: list[ServiceB] = []
        errors: list[Exception] = []

        def resolve_service() -> None:
            try:
                results.append(container.resolve(ServiceB))
            except Exception as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=resolve_service) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert not errors
        assert len(results) == 10
        assert all(r is results[0] for r in results)
        assert all(r.a is results[0].a for r in results)

    def test_concurrent_transient_resolution_different_instances(self, container: Container) -> None:
        container.add_concrete(ServiceA, lifetime=Lifetime.TRANSIENT)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: container.resolve(ServiceA), range(20)))

        assert len({id(r) for r in results}) == 20

    def test_lazy_value_produced_once_across_threads(self, container: Container) -> None:
        calls: list[int] = []

        def factory(_injector: Any) -> ServiceA:
            calls.append(1)
            return ServiceA()

        container.add_factory(factory, provides=ServiceA, lifetime=Lifetime.TRANSIENT)
        lazy = container.resolve(Lazy[ServiceA])

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: lazy.value, range(16)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_scopes_on_separate_threads_share_singletons(self, container: Container) -> None:
        container.add_concrete(ServiceA)

        def resolve_in_scope() -> ServiceA:
            with container.create_scope() as scope:
                return scope.resolve(ServiceA)

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = [executor.submit(resolve_in_scope).result() for _ in range(8)]

        assert all(result is results[0] for result in results)
