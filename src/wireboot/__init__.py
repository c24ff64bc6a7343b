from wireboot.boot import bootstrap, run_startup
from wireboot.configuration import BootSettings, Configuration, DependencyResolver
from wireboot.exceptions import (
    WireBootComponentNotFoundError,
    WireBootDoubleInitializationError,
    WireBootError,
    WireBootFactoryProductError,
    WireBootGraphResolutionError,
    WireBootInstantiationError,
    WireBootInvalidComponentError,
    WireBootLifecycleHookError,
    WireBootProxyAlreadySetError,
)
from wireboot.locators import ClassLocator, PackageClassLocator, StaticClassLocator
from wireboot.markers import (
    BEAN,
    COMPONENT,
    All,
    Injected,
    Qualifier,
    RoleTag,
    bean,
    component,
    initializer,
    post_init,
    pre_destroy,
    startup,
)
from wireboot.registry import Registry
from wireboot.scope import ComponentState, Scope

__all__ = [
    "BEAN",
    "COMPONENT",
    "All",
    "BootSettings",
    "ClassLocator",
    "ComponentState",
    "Configuration",
    "DependencyResolver",
    "Injected",
    "PackageClassLocator",
    "Qualifier",
    "Registry",
    "RoleTag",
    "Scope",
    "StaticClassLocator",
    "WireBootComponentNotFoundError",
    "WireBootDoubleInitializationError",
    "WireBootError",
    "WireBootFactoryProductError",
    "WireBootGraphResolutionError",
    "WireBootInstantiationError",
    "WireBootInvalidComponentError",
    "WireBootLifecycleHookError",
    "WireBootProxyAlreadySetError",
    "bean",
    "bootstrap",
    "component",
    "initializer",
    "post_init",
    "pre_destroy",
    "run_startup",
    "startup",
]
