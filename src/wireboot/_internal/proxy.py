from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from wireboot.exceptions import WireBootError, WireBootInstantiationError

if TYPE_CHECKING:
    from wireboot._internal.descriptors import ComponentDescriptor

_DESCRIPTOR_SLOT = "_wireboot_descriptor"
_LOCAL_ATTRIBUTES = frozenset({_DESCRIPTOR_SLOT, "__class__"})
_FORWARDED_SPECIAL_METHODS: tuple[str, ...] = (
    "__call__",
    "__len__",
    "__iter__",
    "__next__",
    "__contains__",
    "__getitem__",
    "__setitem__",
    "__delitem__",
    "__enter__",
    "__exit__",
    "__aenter__",
    "__aexit__",
    "__aiter__",
    "__anext__",
    "__await__",
    "__bool__",
    "__eq__",
    "__ne__",
    "__lt__",
    "__le__",
    "__gt__",
    "__ge__",
    "__format__",
)

_proxy_types: dict[type[Any], type[Any]] = {}


def build_proxy(descriptor: ComponentDescriptor) -> Any:
    """Return a stand-in that forwards every access to ``descriptor.instance``.

    The stand-in is an instance of a generated subclass of the descriptor's
    type, so ``isinstance`` checks against the contract keep working. It reads
    the descriptor on every access, which is what lets a reload swap the
    underlying instance.
    """
    proxy_type = proxy_type_for(descriptor.component_type)
    try:
        proxy = object.__new__(proxy_type)
    except TypeError as error:
        msg = f"Cannot create a proxy for '{descriptor.name}': {error}"
        raise WireBootInstantiationError(msg, component_type=descriptor.component_type) from error
    object.__setattr__(proxy, _DESCRIPTOR_SLOT, descriptor)
    return proxy


def proxy_type_for(contract: type[Any]) -> type[Any]:
    if contract not in _proxy_types:
        _proxy_types[contract] = _generate_proxy_type(contract)
    return _proxy_types[contract]


def is_proxy(candidate: object) -> bool:
    return type(candidate) in _proxy_types.values()


def proxy_descriptor(proxy: Any) -> ComponentDescriptor:
    return object.__getattribute__(proxy, _DESCRIPTOR_SLOT)


def _target(proxy: Any) -> Any:
    descriptor = object.__getattribute__(proxy, _DESCRIPTOR_SLOT)
    if descriptor.instance is None:
        msg = f"Component '{descriptor.name}' has no live instance behind its proxy."
        raise WireBootError(msg)
    return descriptor.instance


def _getattribute(self: Any, name: str) -> Any:
    if name in _LOCAL_ATTRIBUTES:
        return object.__getattribute__(self, name)
    return getattr(_target(self), name)


def _setattr(self: Any, name: str, value: Any) -> None:
    setattr(_target(self), name, value)


def _delattr(self: Any, name: str) -> None:
    delattr(_target(self), name)


def _repr(self: Any) -> str:
    return repr(_target(self))


def _str(self: Any) -> str:
    return str(_target(self))


def _dir(self: Any) -> list[str]:
    return dir(_target(self))


def _forwarder(name: str) -> Callable[..., Any]:
    def forward(self: Any, *args: Any, **kwargs: Any) -> Any:
        return getattr(_target(self), name)(*args, **kwargs)

    forward.__name__ = name
    return forward


def _overrides(contract: type[Any], name: str) -> bool:
    # Class namespaces only: getattr would also see the metaclass (type.__call__).
    return any(name in vars(klass) for klass in contract.__mro__ if klass is not object)


def _generate_proxy_type(contract: type[Any]) -> type[Any]:
    namespace: dict[str, Any] = {
        "__slots__": (_DESCRIPTOR_SLOT,),
        "__module__": contract.__module__,
        "__qualname__": f"{contract.__qualname__}Proxy",
        "__getattribute__": _getattribute,
        "__setattr__": _setattr,
        "__delattr__": _delattr,
        "__repr__": _repr,
        "__str__": _str,
        "__dir__": _dir,
    }
    for name in _FORWARDED_SPECIAL_METHODS:
        if _overrides(contract, name):
            namespace[name] = _forwarder(name)

    contract_hash = getattr(contract, "__hash__", None)
    if contract_hash is None:
        namespace["__hash__"] = None
    elif contract_hash is object.__hash__:
        # Stable across reloads: a proxy must stay usable as a dict key.
        namespace["__hash__"] = object.__hash__
    else:
        namespace["__hash__"] = _forwarder("__hash__")

    metaclass = type(contract)
    proxy_type = metaclass(f"{contract.__name__}Proxy", (contract,), namespace)
    # Abstract members are served by the target; the proxy itself must be creatable.
    proxy_type.__abstractmethods__ = frozenset()
    return proxy_type
