from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, TypeAlias

from wireboot._internal.markers import RoleTag
from wireboot._internal.type_checks import is_assignable
from wireboot.exceptions import WireBootProxyAlreadySetError
from wireboot.scope import ComponentState, Scope

if TYPE_CHECKING:
    from wireboot.configuration import DependencyResolver

ComponentType: TypeAlias = Any
"""A class (or, for factory products, any annotated return type) managed by the registry."""

Hook: TypeAlias = Callable[[Any], Any]
"""An unbound zero-argument method, invoked as ``hook(instance)``."""

NO_DEFAULT: Any = object()


def type_name(component_type: ComponentType) -> str:
    return getattr(component_type, "__qualname__", repr(component_type))


@dataclass(kw_only=True, eq=False)
class DependencyRequirement:
    """Describe a single dependency a component needs, and what satisfied it.

    Requirements start unresolved. The resolution engine attaches matching
    descriptors as they become available; attaching only ever adds state.
    """

    target_type: ComponentType
    """The type a provider must be assignable to."""
    qualifier: str | None = None
    """When set, only providers registered under the same qualifier match."""
    is_collection: bool = False
    """True when the consumer wants every matching implementation."""
    required: bool = True
    """False when an external resolver or a parameter default took over."""
    name: str = ""
    """Initializer parameter or member name this requirement feeds."""
    default: Any = NO_DEFAULT
    """Parameter default, used when nothing can ever satisfy the requirement."""

    matches: list[ComponentDescriptor] = field(default_factory=list)
    """Descriptors attached so far, in attachment order."""
    resolved_value: Any = None
    """Single value, or the live list of values for collection requirements."""
    is_resolved: bool = False
    resolver: DependencyResolver | None = None
    """The external resolver that supplied the value, if any."""

    def __post_init__(self) -> None:
        if self.is_collection and self.resolved_value is None:
            self.resolved_value = []

    def fresh(self) -> DependencyRequirement:
        """Return an unresolved copy of this requirement."""
        return replace(
            self,
            matches=[],
            resolved_value=[] if self.is_collection else None,
            is_resolved=False,
            resolver=None,
        )

    def accepts(self, descriptor: ComponentDescriptor) -> bool:
        """Return True when ``descriptor`` structurally matches this requirement."""
        if self.qualifier is not None and descriptor.qualifier != self.qualifier:
            return False
        return is_assignable(descriptor.component_type, self.target_type)

    def is_open_for(self, descriptor: ComponentDescriptor) -> bool:
        """Return True when ``descriptor`` would still be attached to this requirement."""
        if self.resolver is not None or not self.accepts(descriptor):
            return False
        if self.is_collection:
            return all(match is not descriptor for match in self.matches)
        return not self.is_resolved

    def attach(self, descriptor: ComponentDescriptor) -> None:
        self.matches.append(descriptor)
        if self.is_collection:
            self.resolved_value.append(descriptor.exposed_instance)
        else:
            self.resolved_value = descriptor.exposed_instance
        self.is_resolved = True

    def resolve_externally(self, resolver: DependencyResolver) -> None:
        """Hand this requirement to an external resolver (last-resort provider)."""
        self.resolver = resolver
        self.required = False
        self.resolved_value = resolver.resolve(self)
        self.is_resolved = True

    def fall_back_to_default(self) -> None:
        self.required = False
        self.resolved_value = self.default
        self.is_resolved = True

    def close_empty_collection(self) -> None:
        """Mark a collection nobody can ever contribute to as resolved (and empty)."""
        self.is_resolved = True

    def is_satisfied(self) -> bool:
        return self.is_resolved or not self.required

    def refresh(self) -> Any:
        """Recompute the value from the attached providers' current instances.

        Used on reload: the same providers are kept, but a provider that was
        itself reloaded now exposes a different object.
        """
        if self.resolver is not None or not self.matches:
            return self.resolved_value
        if self.is_collection:
            self.resolved_value[:] = [match.exposed_instance for match in self.matches]
        else:
            self.resolved_value = self.matches[0].exposed_instance
        return self.resolved_value

    def describe(self) -> str:
        target = type_name(self.target_type)
        if self.is_collection:
            target = f"All[{target}]"
        if self.qualifier is not None:
            target = f"{target} (qualifier {self.qualifier!r})"
        return f"'{self.name}': {target}"


@dataclass(kw_only=True, eq=False)
class FactoryProduct:
    """Describe a ``@bean`` method and lazily derive its product descriptor."""

    name: str
    producer: Hook
    product_type: ComponentType
    qualifier: str | None = None
    scope: Scope = Scope.SINGLETON
    role_tags: frozenset[RoleTag] = frozenset()
    post_init: Hook | None = None
    pre_destroy: Hook | None = None

    _descriptor: ProductDescriptor | None = field(default=None, init=False, repr=False)

    def descriptor_for(self, parent: ComponentDescriptor) -> ProductDescriptor:
        if self._descriptor is None:
            self._descriptor = ProductDescriptor(
                component_type=self.product_type,
                initializer=self.producer,
                qualifier=self.qualifier,
                scope=self.scope,
                role_tags=self.role_tags,
                post_init=self.post_init,
                pre_destroy=self.pre_destroy,
                parent=parent,
                producer=self.producer,
            )
        return self._descriptor


@dataclass(kw_only=True, eq=False)
class ComponentDescriptor:
    """Hold the static metadata and live state of one component.

    ``instance`` is set exactly while the component is instantiated (between
    the instantiation service creating it and ``destroy`` clearing it).
    ``proxy_instance`` is only ever set for ``Scope.PROXY`` and only once.
    """

    component_type: ComponentType
    initializer: Callable[..., Any] | None
    """Designated initializer; ``None`` for pre-supplied instances."""
    qualifier: str | None = None
    scope: Scope = Scope.SINGLETON
    role_tags: frozenset[RoleTag] = frozenset()
    post_init: Hook | None = None
    pre_destroy: Hook | None = None
    constructor_dependencies: list[DependencyRequirement] = field(default_factory=list)
    """Unresolved requirement templates, in initializer parameter order."""
    injected_members: list[DependencyRequirement] = field(default_factory=list)
    """Unresolved templates for ``Injected[...]`` class members."""
    factory_products: list[FactoryProduct] = field(default_factory=list)

    dependents: list[ComponentDescriptor] = field(default_factory=list, repr=False)
    """Non-owning back-references to consumers, used for cascade reload."""
    constructor_requirements: list[DependencyRequirement] = field(default_factory=list, repr=False)
    member_requirements: list[DependencyRequirement] = field(default_factory=list, repr=False)
    instance: Any = field(default=None, repr=False)
    state: ComponentState = ComponentState.DISCOVERED

    _proxy_instance: Any = field(default=None, init=False, repr=False)

    @classmethod
    def for_instance(
        cls,
        instance: Any,
        *,
        provides: ComponentType | None = None,
        qualifier: str | None = None,
    ) -> ComponentDescriptor:
        """Wrap an externally constructed instance as an instantiated descriptor."""
        descriptor = cls(
            component_type=provides if provides is not None else type(instance),
            initializer=None,
            qualifier=qualifier,
        )
        descriptor.instance = instance
        descriptor.state = ComponentState.INSTANTIATED
        return descriptor

    @property
    def proxy_instance(self) -> Any:
        return self._proxy_instance

    @proxy_instance.setter
    def proxy_instance(self, proxy: Any) -> None:
        if self._proxy_instance is not None:
            msg = f"Proxy instance for '{self.name}' is already set."
            raise WireBootProxyAlreadySetError(msg)
        self._proxy_instance = proxy

    @property
    def exposed_instance(self) -> Any:
        """Return what consumers receive: the proxy when one exists."""
        if self._proxy_instance is not None:
            return self._proxy_instance
        return self.instance

    @property
    def is_pre_supplied(self) -> bool:
        return self.initializer is None

    @property
    def name(self) -> str:
        return type_name(self.component_type)

    def product_descriptors(self) -> list[ProductDescriptor]:
        return [product.descriptor_for(self) for product in self.factory_products]

    def add_dependent(self, consumer: ComponentDescriptor) -> None:
        if all(dependent is not consumer for dependent in self.dependents):
            self.dependents.append(consumer)

    def __repr__(self) -> str:
        if self.qualifier is None:
            return f"<{type(self).__name__} {self.name}>"
        return f"<{type(self).__name__} {self.name} qualifier={self.qualifier!r}>"


@dataclass(kw_only=True, eq=False, repr=False)
class ProductDescriptor(ComponentDescriptor):
    """Descriptor of a factory product, created by invoking ``producer`` on ``parent``."""

    parent: ComponentDescriptor
    producer: Hook


@dataclass(eq=False)
class PendingRegistration:
    """A descriptor waiting in the work queue, with its requirements."""

    descriptor: ComponentDescriptor
    constructor_requirements: list[DependencyRequirement]
    member_requirements: list[DependencyRequirement]

    @classmethod
    def for_descriptor(cls, descriptor: ComponentDescriptor) -> PendingRegistration:
        descriptor.state = ComponentState.PENDING
        return cls(
            descriptor=descriptor,
            constructor_requirements=[
                requirement.fresh() for requirement in descriptor.constructor_dependencies
            ],
            member_requirements=[
                requirement.fresh() for requirement in descriptor.injected_members
            ],
        )

    def requirements(self) -> Iterator[DependencyRequirement]:
        yield from self.constructor_requirements
        yield from self.member_requirements

    def is_ready(self) -> bool:
        return all(requirement.is_satisfied() for requirement in self.requirements())

    def offer(self, provider: ComponentDescriptor) -> int:
        """Attach ``provider`` to every open requirement it matches.

        Returns:
            Number of requirements the provider was attached to.

        """
        attached = 0
        for requirement in self.requirements():
            if requirement.is_open_for(provider):
                requirement.attach(provider)
                attached += 1
        if attached:
            provider.add_dependent(self.descriptor)
        return attached

    def constructor_arguments(self) -> list[Any]:
        return [requirement.resolved_value for requirement in self.constructor_requirements]

    def member_values(self) -> dict[str, Any]:
        return {
            requirement.name: requirement.resolved_value for requirement in self.member_requirements
        }

    def missing(self) -> list[DependencyRequirement]:
        return [requirement for requirement in self.requirements() if not requirement.is_satisfied()]

    def describe(self) -> str:
        missing = ", ".join(requirement.describe() for requirement in self.missing())
        return f"{self.descriptor.name} (missing {missing})" if missing else self.descriptor.name

    def __str__(self) -> str:
        return self.descriptor.name
