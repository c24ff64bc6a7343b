from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, cast, get_type_hints

import pytest

from wireboot._internal.dependencies import RequirementsExtractor
from wireboot._internal.descriptors import NO_DEFAULT, DependencyRequirement
from wireboot._internal.markers import is_injected_annotation
from wireboot.registry import Registry

_WIREBOOT_REGISTRY_ATTR = "_wireboot_registry"
_WIREBOOT_INJECTED_PARAMETERS_ATTR = "__wireboot_pytest_injected_parameters__"
_REQUIREMENTS_EXTRACTOR = RequirementsExtractor()


@dataclass(frozen=True, slots=True)
class InjectedParameter:
    """A test function parameter filled from the registry instead of a fixture."""

    name: str
    requirement: DependencyRequirement


@pytest.fixture()
def wireboot_registry() -> Registry:
    """Fixture hook for the registry used to resolve ``Injected[...]`` test parameters.

    Users must override this fixture in their own test suite, typically by
    returning ``bootstrap(...)`` for the components under test.

    """
    msg = (
        "The wireboot pytest plugin requires overriding the 'wireboot_registry' fixture in "
        "your test suite. Define @pytest.fixture() def wireboot_registry() -> Registry: ... "
        "and return a booted registry."
    )
    raise RuntimeError(msg)


@pytest.fixture(autouse=True)
def _wireboot_state(request: pytest.FixtureRequest) -> None:
    """Store the registry on the test node, only for tests that inject parameters."""
    function = getattr(request, "function", None)
    if function is None or not getattr(function, _WIREBOOT_INJECTED_PARAMETERS_ATTR, None):
        return
    node = cast("Any", request.node)
    setattr(node, _WIREBOOT_REGISTRY_ATTR, request.getfixturevalue("wireboot_registry"))


def inspect_injected_parameters(
    function: Callable[..., Any],
) -> tuple[inspect.Signature, tuple[InjectedParameter, ...]]:
    """Return the signature of ``function`` and its ``Injected[...]`` parameters."""
    signature = inspect.signature(function)
    try:
        hints = get_type_hints(function, include_extras=True)
    except (AttributeError, NameError, TypeError):
        hints = {}

    injected: list[InjectedParameter] = []
    for parameter in signature.parameters.values():
        annotation = hints.get(parameter.name, parameter.annotation)
        if not is_injected_annotation(annotation):
            continue
        default = (
            parameter.default if parameter.default is not inspect.Parameter.empty else NO_DEFAULT
        )
        injected.append(
            InjectedParameter(
                name=parameter.name,
                requirement=_REQUIREMENTS_EXTRACTOR.requirement_for(
                    name=parameter.name,
                    annotation=annotation,
                    default=default,
                ),
            ),
        )
    return signature, tuple(injected)


def pytest_pycollect_makeitem(
    collector: Any,
    name: str,
    obj: object,
) -> Any | None:
    """Hide ``Injected[...]`` parameters from pytest fixture name matching.

    Pytest treats test function parameters as fixture names. This hook rewrites
    the signature of test functions that use wireboot injection so injected
    parameters are not interpreted as missing fixtures.

    Args:
        collector: Pytest collector instance.
        name: Collected object name.
        obj: Candidate object.

    Returns:
        ``None`` to continue default collection flow.

    """
    if not callable(obj):
        return None
    if not collector.istestfunction(obj, name):
        return None

    signature, injected_parameters = inspect_injected_parameters(cast("Callable[..., Any]", obj))
    if not injected_parameters:
        return None

    injected_names = {parameter.name for parameter in injected_parameters}
    obj_as_any = cast("Any", obj)
    obj_as_any.__dict__[_WIREBOOT_INJECTED_PARAMETERS_ATTR] = injected_parameters
    obj_as_any.__signature__ = signature.replace(
        parameters=[
            parameter
            for parameter in signature.parameters.values()
            if parameter.name not in injected_names
        ],
    )
    return None


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> Iterator[None]:
    """Wrap test function execution to resolve ``Injected[...]`` parameters.

    Values are looked up in the registry stored on the test item at call time.
    If no registry is attached to the item, this hook is a no-op.

    Args:
        pyfuncitem: Collected pytest function item.

    Yields:
        Control back to pytest around test execution.

    """
    original_callable = cast("Callable[..., Any]", pyfuncitem.obj)
    injected_parameters = cast(
        "tuple[InjectedParameter, ...] | None",
        getattr(original_callable, _WIREBOOT_INJECTED_PARAMETERS_ATTR, None),
    )
    if injected_parameters is None:
        _, injected_parameters = inspect_injected_parameters(original_callable)
    if not injected_parameters:
        yield
        return

    registry = cast("Registry | None", getattr(pyfuncitem, _WIREBOOT_REGISTRY_ATTR, None))
    if registry is None:
        yield
        return

    pyfuncitem.obj = _inject(original_callable, injected_parameters, registry)
    try:
        yield
    finally:
        pyfuncitem.obj = original_callable


def _inject(
    function: Callable[..., Any],
    injected_parameters: tuple[InjectedParameter, ...],
    registry: Registry,
) -> Callable[..., Any]:
    def resolve_missing(passed: dict[str, Any]) -> dict[str, Any]:
        return {
            parameter.name: registry.resolve(parameter.requirement)
            for parameter in injected_parameters
            if parameter.name not in passed
        }

    if inspect.iscoroutinefunction(function):

        @functools.wraps(function)
        async def _invoke_with_registry(*args: Any, **kwargs: Any) -> Any:
            return await function(*args, **kwargs, **resolve_missing(kwargs))

    else:

        @functools.wraps(function)
        def _invoke_with_registry(*args: Any, **kwargs: Any) -> Any:
            return function(*args, **kwargs, **resolve_missing(kwargs))

    return _invoke_with_registry
