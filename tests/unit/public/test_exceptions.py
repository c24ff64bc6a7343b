"""Tests for the wireboot exception hierarchy."""

from __future__ import annotations

import pytest

from wireboot import (
    Configuration,
    Registry,
    WireBootComponentNotFoundError,
    WireBootDoubleInitializationError,
    WireBootError,
    WireBootFactoryProductError,
    WireBootGraphResolutionError,
    WireBootInstantiationError,
    WireBootInvalidComponentError,
    WireBootLifecycleHookError,
    WireBootProxyAlreadySetError,
    bean,
    bootstrap,
    component,
)
from wireboot._internal.descriptors import (
    ComponentDescriptor,
    DependencyRequirement,
    PendingRegistration,
)


class Dependency:
    pass


@component
class Consumer:
    def __init__(self, dependency: Dependency) -> None:
        self.dependency = dependency


@pytest.mark.parametrize(
    "error_type",
    [
        WireBootComponentNotFoundError,
        WireBootDoubleInitializationError,
        WireBootFactoryProductError,
        WireBootGraphResolutionError,
        WireBootInstantiationError,
        WireBootInvalidComponentError,
        WireBootLifecycleHookError,
        WireBootProxyAlreadySetError,
    ],
)
def test_every_error_derives_from_base(error_type: type[Exception]) -> None:
    assert issubclass(error_type, WireBootError)


class TestWireBootGraphResolutionError:
    def test_message_lists_pending_components_and_missing_requirements(self) -> None:
        descriptor = ComponentDescriptor(
            component_type=Consumer,
            initializer=Consumer,
            constructor_dependencies=[
                DependencyRequirement(target_type=Dependency, name="dependency"),
            ],
        )
        pending = PendingRegistration.for_descriptor(descriptor)

        error = WireBootGraphResolutionError(3, [pending])

        assert error.max_iterations == 3
        assert error.pending == (pending,)
        assert str(error).splitlines() == [
            "Maximum number of allowed iterations was reached (3). Unresolved components: 1.",
            "  - Consumer (missing 'dependency': Dependency)",
        ]

    def test_raised_for_missing_provider(self) -> None:
        with pytest.raises(WireBootGraphResolutionError) as exc_info:
            bootstrap([Consumer], Configuration().with_max_iterations(3))

        assert [str(registration) for registration in exc_info.value.pending] == ["Consumer"]


class TestWireBootComponentNotFoundError:
    def test_message_names_type_and_qualifier(self) -> None:
        error = WireBootComponentNotFoundError(Dependency, "primary")

        assert error.component_type is Dependency
        assert error.qualifier == "primary"
        assert str(error) == "Component 'Dependency' (qualifier 'primary') was not found."

    def test_raised_by_update_on_empty_registry(self) -> None:
        registry = Registry()
        registry.init([])

        with pytest.raises(WireBootComponentNotFoundError, match="'Dependency'"):
            registry.update(Dependency, Dependency())


class TestWireBootInvalidComponentError:
    def test_raised_for_bean_with_parameters(self) -> None:
        @component
        class Factory:
            @bean
            def dependency(self, name: str) -> Dependency:
                _ = name
                return Dependency()

        with pytest.raises(WireBootInvalidComponentError, match="must take no arguments"):
            bootstrap([Factory])


class TestWireBootInstantiationError:
    def test_factory_product_error_is_instantiation_error(self) -> None:
        error = WireBootFactoryProductError("failed", component_type=Dependency)

        assert isinstance(error, WireBootInstantiationError)
        assert error.component_type is Dependency
