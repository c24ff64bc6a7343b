from wireboot._internal.markers import (
    BEAN,
    COMPONENT,
    INITIALIZER,
    POST_INIT,
    PRE_DESTROY,
    STARTUP,
    All,
    AllMarker,
    Injected,
    InjectedMarker,
    Qualifier,
    RoleTag,
    bean,
    component,
    initializer,
    is_all_annotation,
    is_injected_annotation,
    post_init,
    pre_destroy,
    split_qualifier,
    startup,
    strip_injected_annotation,
)

__all__ = [
    "BEAN",
    "COMPONENT",
    "INITIALIZER",
    "POST_INIT",
    "PRE_DESTROY",
    "STARTUP",
    "All",
    "AllMarker",
    "Injected",
    "InjectedMarker",
    "Qualifier",
    "RoleTag",
    "bean",
    "component",
    "initializer",
    "is_all_annotation",
    "is_injected_annotation",
    "post_init",
    "pre_destroy",
    "split_qualifier",
    "startup",
    "strip_injected_annotation",
]
