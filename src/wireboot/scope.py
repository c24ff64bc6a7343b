from __future__ import annotations

from enum import Enum, auto


class Scope(Enum):
    """Define how consumers receive a component's instance."""

    SINGLETON = auto()
    """Consumers receive the raw instance created at boot."""

    PROXY = auto()
    """Consumers receive a forwarding stand-in for the current instance.

    The stand-in is created once and always delegates to the descriptor's live
    instance, so ``Registry.reload`` can swap the underlying object without
    invalidating references already held by other components.
    """


class ComponentState(Enum):
    """Track where a component is in its boot and reload lifecycle."""

    DISCOVERED = auto()
    PENDING = auto()
    RESOLVED = auto()
    INSTANTIATED = auto()
    REGISTERED = auto()
    DESTROYED = auto()
    GRAPH_ERROR = auto()
    """Terminal: the component stayed pending when the iteration bound was hit."""
