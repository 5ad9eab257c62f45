from __future__ import annotations

import pytest

from liteinject.container import Container
from liteinject.entries import Lifetime, ServiceKind

pydantic_settings = pytest.importorskip("pydantic_settings")


class AppSettings(pydantic_settings.BaseSettings):  # type: ignore[misc, name-defined]
    service_name: str = "liteinject"
    retries: int = 3


class Client:
    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings


class TestSettingsRegistration:
    def test_settings_are_registered_as_singleton_factory(self, container: Container) -> None:
        entry = container.add_concrete(AppSettings, lifetime=Lifetime.TRANSIENT)

        assert entry.kind is ServiceKind.FACTORY
        assert entry.lifetime is Lifetime.SINGLETON
        assert container.resolve(AppSettings) is container.resolve(AppSettings)

    def test_settings_read_environment(
        self,
        container: Container,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("SERVICE_NAME", "from-env")
        container.add_concrete(AppSettings)

        assert container.resolve(AppSettings).service_name == "from-env"

    def test_settings_injected_into_constructor(self, container: Container) -> None:
        container.add_concrete(AppSettings)
        container.add_concrete(Client)

        client = container.resolve(Client)

        assert client.settings is container.resolve(AppSettings)
        assert client.settings.retries == 3
