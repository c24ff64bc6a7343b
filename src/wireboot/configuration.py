from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from wireboot._internal.markers import (
    BEAN,
    COMPONENT,
    INITIALIZER,
    POST_INIT,
    PRE_DESTROY,
    STARTUP,
    RoleTag,
)

if TYPE_CHECKING:
    from wireboot._internal.descriptors import DependencyRequirement

DEFAULT_MAX_ITERATIONS = 10_000
"""Default bound on total work-queue rotations during one resolution."""


class BootSettings(BaseSettings):
    """Environment-driven boot settings.

    Values are read from ``WIREBOOT_*`` environment variables, for example
    ``WIREBOOT_MAX_ITERATIONS=500``.
    """

    model_config = SettingsConfigDict(env_prefix="WIREBOOT_")

    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, gt=0)
    """Work-queue rotations allowed before the graph is declared unresolvable."""

    discover_in_thread: bool = False
    """Run class discovery on a worker thread (joined before resolution)."""


@runtime_checkable
class DependencyResolver(Protocol):
    """Supply values for requirements no registered component satisfies.

    Resolvers are consulted in registration order, once per requirement, before
    the requirement is declared unresolved. The first resolver whose
    ``can_resolve`` returns true provides the value; the requirement is then
    marked not required, so ``resolve`` may return ``None``.
    """

    def can_resolve(self, requirement: DependencyRequirement) -> bool: ...

    def resolve(self, requirement: DependencyRequirement) -> Any: ...


@dataclass(frozen=True, slots=True)
class ProvidedInstance:
    """An externally constructed instance to register before resolution starts."""

    instance: Any
    provides: Any | None = None
    qualifier: str | None = None


class Configuration:
    """Collect everything the scanner and the resolution engine consume.

    Mutators return the configuration so calls can be chained.

    Examples:
        .. code-block:: python

            configuration = (
                Configuration()
                .add_instance(Settings())
                .add_resolver(EnvironmentResolver())
                .with_max_iterations(200)
            )

    """

    def __init__(self, settings: BootSettings | None = None) -> None:
        self.settings = settings if settings is not None else BootSettings()
        self.component_tags: set[RoleTag] = {COMPONENT}
        self.bean_tags: set[RoleTag] = {BEAN}
        self.aliases: dict[RoleTag, RoleTag] = {}
        self.provided_instances: list[ProvidedInstance] = []
        self.resolvers: list[DependencyResolver] = []

    @property
    def max_iterations(self) -> int:
        return self.settings.max_iterations

    def with_max_iterations(self, max_iterations: int) -> Configuration:
        """Override the iteration bound (validated like the environment value)."""
        self.settings = BootSettings(
            max_iterations=max_iterations,
            discover_in_thread=self.settings.discover_in_thread,
        )
        return self

    def add_component_tag(self, *tags: RoleTag) -> Configuration:
        self.component_tags.update(tags)
        return self

    def add_bean_tag(self, *tags: RoleTag) -> Configuration:
        self.bean_tags.update(tags)
        return self

    def add_alias(self, alias: RoleTag, canonical: RoleTag) -> Configuration:
        """Treat ``alias`` as ``canonical`` wherever the scanner looks for tags.

        Canonical tags are ``COMPONENT``, ``BEAN`` (or any registered component
        or bean tag), ``INITIALIZER``, ``POST_INIT``, ``PRE_DESTROY`` and
        ``STARTUP``.
        """
        self.aliases[alias] = canonical
        return self

    def add_instance(
        self,
        instance: Any,
        *,
        provides: Any | None = None,
        qualifier: str | None = None,
    ) -> Configuration:
        """Pre-supply an instance; it is offered to every pending component first.

        Args:
            instance: Externally constructed object.
            provides: Type to register it under. Defaults to ``type(instance)``.
            qualifier: Optional qualifier name.

        """
        self.provided_instances.append(
            ProvidedInstance(instance=instance, provides=provides, qualifier=qualifier),
        )
        return self

    def add_resolver(self, resolver: DependencyResolver) -> Configuration:
        self.resolvers.append(resolver)
        return self

    def canonical_tags(self, tags: frozenset[RoleTag]) -> frozenset[RoleTag]:
        """Return ``tags`` plus the canonical tag of every alias among them."""
        return tags | {self.aliases[tag] for tag in tags if tag in self.aliases}

    def is_component(self, tags: frozenset[RoleTag]) -> bool:
        return not self.component_tags.isdisjoint(self.canonical_tags(tags))

    def is_bean(self, tags: frozenset[RoleTag]) -> bool:
        return not self.bean_tags.isdisjoint(self.canonical_tags(tags))

    def has_tag(self, tags: frozenset[RoleTag], tag: RoleTag) -> bool:
        return tag in self.canonical_tags(tags)


__all__ = [
    "BEAN",
    "COMPONENT",
    "DEFAULT_MAX_ITERATIONS",
    "INITIALIZER",
    "POST_INIT",
    "PRE_DESTROY",
    "STARTUP",
    "BootSettings",
    "Configuration",
    "DependencyResolver",
    "ProvidedInstance",
]
