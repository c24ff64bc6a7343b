from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, TypeVar, overload

from wireboot._internal.descriptors import (
    NO_DEFAULT,
    ComponentDescriptor,
    ComponentType,
    DependencyRequirement,
    ProductDescriptor,
)
from wireboot._internal.instantiation import InstantiationService
from wireboot._internal.markers import RoleTag
from wireboot._internal.proxy import is_proxy, proxy_descriptor
from wireboot._internal.type_checks import is_assignable, is_runtime_class
from wireboot.exceptions import (
    WireBootComponentNotFoundError,
    WireBootDoubleInitializationError,
    WireBootInstantiationError,
)
from wireboot.scope import ComponentState

T = TypeVar("T")
_MISSING: Any = object()

logger = logging.getLogger(__name__)


class Registry:
    """Hold the booted components and serve lookups, updates and reloads.

    A registry is populated exactly once through ``init`` (normally by
    ``bootstrap``). Lookups by type, implemented type and role tag are cached;
    the caches are dropped whenever ``update`` or ``reload`` change what is
    registered. The registry does no locking: mutate it from one thread.

    Examples:
        .. code-block:: python

            registry = bootstrap(PackageClassLocator("myapp.services"))
            repository = registry.get_instance(UserRepository)
            handlers = registry.get_all_instances(EventHandler)

    """

    def __init__(self) -> None:
        self._initialized = False
        self._descriptors: list[ComponentDescriptor] = []
        self._located_types: tuple[Any, ...] = ()
        self._instantiation_service = InstantiationService()
        self._by_type_cache: dict[tuple[Any, str | None], ComponentDescriptor | None] = {}
        self._implementing_cache: dict[tuple[Any, str | None], list[ComponentDescriptor]] = {}
        self._by_role_tag_cache: dict[RoleTag, list[ComponentDescriptor]] = {}

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def all_descriptors(self) -> list[ComponentDescriptor]:
        return list(self._descriptors)

    @property
    def located_types(self) -> tuple[Any, ...]:
        return self._located_types

    def init(
        self,
        descriptors: Iterable[ComponentDescriptor],
        located_types: Iterable[Any] = (),
        instantiation_service: InstantiationService | None = None,
    ) -> None:
        """Populate the registry with resolved descriptors, in registration order.

        Raises:
            WireBootDoubleInitializationError: If the registry was already initialized.

        """
        if self._initialized:
            msg = "Registry is already initialized."
            raise WireBootDoubleInitializationError(msg)

        self._descriptors = list(descriptors)
        self._located_types = tuple(located_types)
        if instantiation_service is not None:
            self._instantiation_service = instantiation_service
        self._initialized = True
        logger.debug("Registry initialized with %d component(s)", len(self._descriptors))

    def get_by_type(
        self,
        component_type: ComponentType,
        qualifier: str | None = None,
    ) -> ComponentDescriptor | None:
        """Return the first registered descriptor assignable to ``component_type``.

        Args:
            component_type: Requested type (a base class or protocol is fine).
            qualifier: When set, only descriptors registered under this
                qualifier are considered.

        Returns:
            The matching descriptor, or ``None`` when nothing matches.

        """
        key = (component_type, qualifier)
        if key not in self._by_type_cache:
            self._by_type_cache[key] = next(
                (
                    descriptor
                    for descriptor in self._descriptors
                    if _matches(descriptor, component_type, qualifier)
                ),
                None,
            )
        return self._by_type_cache[key]

    @overload
    def get_instance(self, component_type: type[T], qualifier: str | None = None) -> T | None: ...

    @overload
    def get_instance(self, component_type: Any, qualifier: str | None = None) -> Any: ...

    def get_instance(self, component_type: Any, qualifier: str | None = None) -> Any:
        """Return what consumers of ``component_type`` receive, or ``None``."""
        descriptor = self.get_by_type(component_type, qualifier)
        if descriptor is None:
            return None
        return descriptor.exposed_instance

    def get_all_implementing(
        self,
        component_type: ComponentType,
        qualifier: str | None = None,
    ) -> list[ComponentDescriptor]:
        """Return every descriptor assignable to ``component_type``, in registration order."""
        key = (component_type, qualifier)
        if key not in self._implementing_cache:
            self._implementing_cache[key] = [
                descriptor
                for descriptor in self._descriptors
                if _matches(descriptor, component_type, qualifier)
            ]
        return list(self._implementing_cache[key])

    def get_all_instances(
        self,
        component_type: ComponentType,
        qualifier: str | None = None,
    ) -> list[Any]:
        return [
            descriptor.exposed_instance
            for descriptor in self.get_all_implementing(component_type, qualifier)
        ]

    def get_by_role_tag(self, tag: RoleTag) -> list[ComponentDescriptor]:
        if tag not in self._by_role_tag_cache:
            self._by_role_tag_cache[tag] = [
                descriptor for descriptor in self._descriptors if tag in descriptor.role_tags
            ]
        return list(self._by_role_tag_cache[tag])

    def resolve(self, requirement: DependencyRequirement) -> Any:
        """Return the value the registry would inject for ``requirement``.

        Collections receive every match (possibly none). A single requirement
        without a match falls back to its default.

        Raises:
            WireBootComponentNotFoundError: If a single requirement has neither
                a match nor a default.

        """
        if requirement.is_collection:
            return self.get_all_instances(requirement.target_type, requirement.qualifier)

        descriptor = self.get_by_type(requirement.target_type, requirement.qualifier)
        if descriptor is not None:
            return descriptor.exposed_instance
        if requirement.default is not NO_DEFAULT:
            return requirement.default
        raise WireBootComponentNotFoundError(requirement.target_type, requirement.qualifier)

    @overload
    def update(self, new_instance: Any, /) -> None: ...

    @overload
    def update(
        self,
        component_type: ComponentType,
        new_instance: Any,
        /,
        *,
        destroy_old: bool = True,
    ) -> None: ...

    def update(
        self,
        component_type: Any,
        new_instance: Any = _MISSING,
        /,
        *,
        destroy_old: bool = True,
    ) -> None:
        """Replace the live instance of a registered component.

        ``update(instance)`` infers the component from the instance's type.
        When ``destroy_old`` is true, the old instance's pre-destroy hook runs
        before the new instance is installed. Consumers holding the proxy see
        the new instance immediately; consumers holding the old object directly
        keep it until they are reloaded.

        Raises:
            WireBootComponentNotFoundError: If no component matches.

        """
        if new_instance is _MISSING:
            new_instance = component_type
            descriptor = self._owner_of(new_instance)
            if descriptor is None:
                raise WireBootComponentNotFoundError(type(new_instance))
        else:
            descriptor = self.get_by_type(component_type)
            if descriptor is None:
                raise WireBootComponentNotFoundError(component_type)

        if destroy_old:
            self._instantiation_service.destroy(descriptor)
        descriptor.instance = new_instance
        descriptor.state = ComponentState.REGISTERED
        self._clear_caches()
        logger.debug("Updated %r", descriptor)

    def reload(self, instance: Any, *, cascade: bool = False) -> Any:
        """Destroy and re-create the component owning ``instance``.

        The component is rebuilt from the providers recorded at boot, each read
        through its current exposed instance. Factory products are re-created
        from the new instance once it exists. With ``cascade``, every component
        that transitively consumes it (not following proxies) is rebuilt once,
        after the components it consumes.

        Args:
            instance: A live instance, a proxy, or any object of the component's type.
            cascade: Reload dependents recursively.

        Returns:
            The new raw instance.

        Raises:
            WireBootComponentNotFoundError: If no component owns ``instance``.
            WireBootInstantiationError: If the component was pre-supplied or
                cannot be re-created.

        """
        descriptor = proxy_descriptor(instance) if is_proxy(instance) else self._owner_of(instance)
        if descriptor is None:
            raise WireBootComponentNotFoundError(type(instance))

        rebuilt = [descriptor]
        if cascade:
            rebuilt.extend(self._in_rebuild_order(self._affected_dependents(descriptor)))
        try:
            for target in rebuilt:
                self._rebuild(target)
        finally:
            self._clear_caches()
        logger.info("Reloaded %d component(s) starting from %r", len(rebuilt), descriptor)
        return descriptor.instance

    def new_instance(self, component_type: type[T], qualifier: str | None = None) -> T:
        """Build a fresh, unregistered instance of a registered component.

        The registered instance is untouched. Lifecycle post-init runs on the
        new object; it is never proxied.

        Raises:
            WireBootComponentNotFoundError: If no component matches.

        """
        descriptor = self.get_by_type(component_type, qualifier)
        if descriptor is None:
            raise WireBootComponentNotFoundError(component_type, qualifier)
        if isinstance(descriptor, ProductDescriptor):
            return self._instantiation_service.produce(descriptor)
        return self._instantiation_service.build(
            descriptor,
            [requirement.refresh() for requirement in descriptor.constructor_requirements],
            {
                requirement.name: requirement.refresh()
                for requirement in descriptor.member_requirements
            },
        )

    def _rebuild(self, descriptor: ComponentDescriptor) -> None:
        if descriptor.is_pre_supplied:
            msg = f"Pre-supplied component '{descriptor.name}' cannot be reloaded; use update()."
            raise WireBootInstantiationError(msg, component_type=descriptor.component_type)

        self._recreate(descriptor)
        # Products are only touched once their parent has a new instance.
        for product in descriptor.product_descriptors():
            self._instantiation_service.destroy(product)
            self._instantiation_service.create_product(product)
            product.state = ComponentState.REGISTERED

    def _affected_dependents(self, root: ComponentDescriptor) -> list[ComponentDescriptor]:
        """Return every component that transitively holds ``root`` or one of its products.

        Dependents of proxied descriptors are not followed: they already see
        the new instance through the proxy.
        """
        affected: dict[int, ComponentDescriptor] = {}
        frontier = [root]
        while frontier:
            current = frontier.pop()
            for exposed in (current, *current.product_descriptors()):
                if exposed.proxy_instance is not None:
                    continue
                for dependent in exposed.dependents:
                    if dependent is root or id(dependent) in affected:
                        continue
                    affected[id(dependent)] = dependent
                    frontier.append(dependent)
        return list(affected.values())

    def _in_rebuild_order(
        self,
        descriptors: list[ComponentDescriptor],
    ) -> list[ComponentDescriptor]:
        """Order ``descriptors`` so that each one is rebuilt after the others it consumes.

        Ties keep registration order. Collections that grew after their
        consumer was built can form a loop; registration order breaks it.
        """
        position = {id(descriptor): index for index, descriptor in enumerate(self._descriptors)}
        remaining = sorted(descriptors, key=lambda descriptor: position.get(id(descriptor), 0))
        ordered: list[ComponentDescriptor] = []
        while remaining:
            ready = next(
                (
                    candidate
                    for candidate in remaining
                    if not any(
                        _feeds(provider, candidate)
                        for provider in remaining
                        if provider is not candidate
                    )
                ),
                remaining[0],
            )
            remaining.remove(ready)
            ordered.append(ready)
        return ordered

    def _recreate(self, descriptor: ComponentDescriptor) -> None:
        self._instantiation_service.destroy(descriptor)
        if isinstance(descriptor, ProductDescriptor):
            self._instantiation_service.create_product(descriptor)
        else:
            self._instantiation_service.instantiate(
                descriptor,
                [requirement.refresh() for requirement in descriptor.constructor_requirements],
                {
                    requirement.name: requirement.refresh()
                    for requirement in descriptor.member_requirements
                },
            )
        descriptor.state = ComponentState.REGISTERED

    def _owner_of(self, instance: Any) -> ComponentDescriptor | None:
        for descriptor in self._descriptors:
            if descriptor.instance is instance:
                return descriptor
        instance_type = type(instance)
        for descriptor in self._descriptors:
            if descriptor.component_type is instance_type:
                return descriptor
        for descriptor in self._descriptors:
            if is_runtime_class(descriptor.component_type) and isinstance(
                instance,
                descriptor.component_type,
            ):
                return descriptor
        return None

    def _clear_caches(self) -> None:
        self._by_type_cache.clear()
        self._implementing_cache.clear()
        self._by_role_tag_cache.clear()


def _feeds(provider: ComponentDescriptor, consumer: ComponentDescriptor) -> bool:
    return any(
        dependent is consumer
        for exposed in (provider, *provider.product_descriptors())
        for dependent in exposed.dependents
    )


def _matches(descriptor: ComponentDescriptor, component_type: Any, qualifier: str | None) -> bool:
    if qualifier is not None and descriptor.qualifier != qualifier:
        return False
    return is_assignable(descriptor.component_type, component_type)
