from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from wireboot._internal.descriptors import ComponentDescriptor, PendingRegistration


class WireBootError(Exception):
    """Represent a base class for all wireboot-specific failures.

    Catch this type when you want to handle any wireboot error path without
    matching each concrete exception class individually.
    """


class WireBootInvalidComponentError(WireBootError):
    """Signal an invalid component or factory-product declaration.

    Raised by the scanner while building descriptors, for example when a
    ``@bean`` method takes parameters or lacks a return annotation, when a
    required initializer parameter has no usable annotation, or when a
    proxy-scoped component has no class contract that can be subclassed.

    Typical fixes include annotating every initializer parameter, keeping
    producer methods zero-argument, or switching the component to
    ``Scope.SINGLETON``.
    """


class WireBootGraphResolutionError(WireBootError):
    """Signal that the dependency graph cannot be fully resolved.

    Raised by the resolution engine when the work queue rotated the
    configured ``max_iterations`` times without draining. This is how
    dependency cycles and missing providers surface. The still-pending
    registrations are attached as ``pending`` for diagnostics.

    Typical fixes include registering the missing component, pre-supplying an
    instance that breaks the cycle, or moving one side of the cycle to member
    injection through an external resolver.
    """

    def __init__(self, max_iterations: int, pending: Sequence[PendingRegistration]) -> None:
        self.max_iterations = max_iterations
        self.pending = tuple(pending)
        lines = [
            f"Maximum number of allowed iterations was reached ({max_iterations}). "
            f"Unresolved components: {len(self.pending)}.",
        ]
        lines.extend(f"  - {registration.describe()}" for registration in self.pending)
        super().__init__("\n".join(lines))


class WireBootInstantiationError(WireBootError):
    """Signal that a component could not be constructed.

    Raised by the instantiation service when the designated initializer raises
    or when the number of resolved arguments does not match the initializer's
    declared parameters. Aborts boot.
    """

    def __init__(self, message: str, *, component_type: Any = None) -> None:
        self.component_type = component_type
        super().__init__(message)


class WireBootFactoryProductError(WireBootInstantiationError):
    """Signal that a factory product (``@bean`` method) could not be produced.

    Scoped to the product: the parent component was built successfully but
    invoking its producer method raised.
    """


class WireBootLifecycleHookError(WireBootError):
    """Signal a failing ``post_init`` or ``pre_destroy`` hook.

    A failing ``post_init`` hook is raised and aborts boot, since a
    half-initialized component must not be served. A failing ``pre_destroy``
    hook is logged and returned by ``InstantiationService.destroy`` instead of
    being raised; destruction proceeds either way.
    """

    def __init__(self, message: str, *, hook_name: str, descriptor: ComponentDescriptor) -> None:
        self.hook_name = hook_name
        self.descriptor = descriptor
        super().__init__(message)


class WireBootDoubleInitializationError(WireBootError):
    """Signal that ``Registry.init`` was called on an initialized registry."""


class WireBootComponentNotFoundError(WireBootError):
    """Signal that no registered component matches a requested type.

    Raised by ``Registry.update``, ``Registry.reload``,
    ``Registry.new_instance`` and the startup invoker. Plain lookups
    (``get_by_type``/``get_instance``) return ``None`` instead.
    """

    def __init__(self, component_type: Any, qualifier: str | None = None) -> None:
        self.component_type = component_type
        self.qualifier = qualifier
        name = getattr(component_type, "__qualname__", repr(component_type))
        if qualifier is not None:
            name = f"{name} (qualifier {qualifier!r})"
        super().__init__(f"Component '{name}' was not found.")


class WireBootProxyAlreadySetError(WireBootError):
    """Signal an attempt to replace a descriptor's proxy instance.

    A proxy is created once per descriptor and survives reloads; replacing it
    would strand references already handed to consumers.
    """
