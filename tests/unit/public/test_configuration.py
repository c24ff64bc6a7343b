from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from wireboot._internal.descriptors import DependencyRequirement
from wireboot.configuration import (
    BEAN,
    COMPONENT,
    DEFAULT_MAX_ITERATIONS,
    POST_INIT,
    BootSettings,
    Configuration,
    DependencyResolver,
    ProvidedInstance,
)
from wireboot.markers import RoleTag

SERVICE = RoleTag("service")
FACTORY = RoleTag("factory")


class _EnvironmentResolver:
    def can_resolve(self, requirement: DependencyRequirement) -> bool:
        return requirement.target_type is str

    def resolve(self, requirement: DependencyRequirement) -> Any:
        return requirement.name.upper()


def test_boot_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WIREBOOT_MAX_ITERATIONS", raising=False)
    monkeypatch.delenv("WIREBOOT_DISCOVER_IN_THREAD", raising=False)

    settings = BootSettings()

    assert settings.max_iterations == DEFAULT_MAX_ITERATIONS == 10_000
    assert settings.discover_in_thread is False


def test_boot_settings_are_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIREBOOT_MAX_ITERATIONS", "250")
    monkeypatch.setenv("WIREBOOT_DISCOVER_IN_THREAD", "true")

    settings = BootSettings()

    assert settings.max_iterations == 250
    assert settings.discover_in_thread is True


def test_boot_settings_reject_non_positive_iteration_bound() -> None:
    with pytest.raises(ValidationError):
        BootSettings(max_iterations=0)


def test_with_max_iterations_replaces_settings_and_keeps_other_values() -> None:
    configuration = Configuration(BootSettings(discover_in_thread=True))

    result = configuration.with_max_iterations(42)

    assert result is configuration
    assert configuration.max_iterations == 42
    assert configuration.settings.discover_in_thread is True


def test_with_max_iterations_validates_value() -> None:
    with pytest.raises(ValidationError):
        Configuration().with_max_iterations(-1)


def test_default_tags() -> None:
    configuration = Configuration()

    assert configuration.is_component(frozenset({COMPONENT}))
    assert configuration.is_bean(frozenset({BEAN}))
    assert not configuration.is_component(frozenset({SERVICE}))


def test_aliases_map_to_canonical_tags() -> None:
    configuration = Configuration().add_alias(SERVICE, COMPONENT).add_alias(FACTORY, BEAN)

    assert configuration.canonical_tags(frozenset({SERVICE})) == frozenset({SERVICE, COMPONENT})
    assert configuration.is_component(frozenset({SERVICE}))
    assert configuration.is_bean(frozenset({FACTORY}))
    assert not configuration.has_tag(frozenset({SERVICE}), POST_INIT)


def test_additional_tags_are_recognized() -> None:
    configuration = Configuration().add_component_tag(SERVICE).add_bean_tag(FACTORY)

    assert configuration.is_component(frozenset({SERVICE}))
    assert configuration.is_bean(frozenset({FACTORY}))


def test_add_instance_records_provided_instances_in_order() -> None:
    first = object()
    second = object()

    configuration = Configuration().add_instance(first).add_instance(
        second,
        provides=object,
        qualifier="second",
    )

    assert configuration.provided_instances == [
        ProvidedInstance(instance=first),
        ProvidedInstance(instance=second, provides=object, qualifier="second"),
    ]


def test_resolvers_follow_the_protocol() -> None:
    resolver = _EnvironmentResolver()

    configuration = Configuration().add_resolver(resolver)

    assert configuration.resolvers == [resolver]
    assert isinstance(resolver, DependencyResolver)
