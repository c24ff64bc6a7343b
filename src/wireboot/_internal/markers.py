from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Annotated, Any, NamedTuple, TypeVar, Union, get_args, get_origin, overload

from wireboot.scope import Scope

T = TypeVar("T")
TargetT = TypeVar("TargetT")
_ANNOTATED_MARKER_MIN_ARGS = 2

ROLE_TAGS_ATTR = "__wireboot_role_tags__"
"""Attribute stamped on decorated classes and functions holding their role tags."""

QUALIFIER_ATTR = "__wireboot_qualifier__"
SCOPE_ATTR = "__wireboot_scope__"


class RoleTag(NamedTuple):
    """Identify a declarative role such as "component" or "bean".

    Role tags are plain values: define your own and register them on the
    ``Configuration`` (directly or as an alias of a built-in tag) to have the
    scanner recognize them.

    Examples:
        .. code-block:: python

            REPOSITORY = RoleTag("repository")

            configuration = Configuration().add_alias(REPOSITORY, COMPONENT)


            @component(tag=REPOSITORY)
            class UserRepository: ...

    """

    name: str

    def __repr__(self) -> str:
        return f"RoleTag({self.name!r})"


COMPONENT = RoleTag("component")
"""Marks a class as a component managed by the registry."""

BEAN = RoleTag("bean")
"""Marks a zero-argument method as a factory-product producer."""

INITIALIZER = RoleTag("initializer")
"""Marks the classmethod or staticmethod used instead of ``__init__``."""

POST_INIT = RoleTag("post_init")
PRE_DESTROY = RoleTag("pre_destroy")
STARTUP = RoleTag("startup")
"""Marks methods invoked once the registry is fully booted."""


class Qualifier(NamedTuple):
    """Differentiate multiple components of the same type.

    Attach ``Qualifier`` metadata to ``typing.Annotated`` to request a specific
    named component.

    Examples:
        .. code-block:: python

            class Database: ...


            ReplicaDb: TypeAlias = Annotated[Database, Qualifier("replica")]

    """

    value: str


class InjectedMarker:
    """Mark a class-level annotation (or test parameter) for injection."""


class AllMarker(NamedTuple):
    """Marker for collecting every registered implementation of a type."""

    dependency_key: Any


if TYPE_CHECKING:
    Injected = Union[T, T]  # noqa: UP007,PYI016
    """Mark a member for injection after construction.

    At runtime ``Injected[T]`` becomes ``Annotated[T, InjectedMarker()]``.
    """

    All = list[T]
    """Request every registered implementation of ``T``.

    ``All[T]`` type-checks as ``list[T]``. The list is captured live and keeps
    growing while components are still being registered.
    """

else:

    class Injected:
        """Mark a member for injection after construction.

        At runtime ``Injected[T]`` resolves to ``Annotated[T, InjectedMarker()]``.

        Examples:
            .. code-block:: python

                @component
                class Handler:
                    audit: Injected[AuditLog]

        """

        def __class_getitem__(cls, item: T) -> Annotated[T, InjectedMarker]:
            if get_origin(item) is Annotated:
                args = get_args(item)
                return build_annotated_key((args[0], *args[1:], InjectedMarker()))
            return build_annotated_key((item, InjectedMarker()))

    class All:
        """Request every registered implementation of a type.

        ``All[Annotated[T, Qualifier("x")]]`` keeps the qualifier, so only
        implementations registered under that qualifier are collected.
        """

        def __class_getitem__(cls, item: Any) -> Any:
            base_key = item
            metadata: tuple[Any, ...] = ()
            if get_origin(item) is Annotated:
                args = get_args(item)
                base_key = args[0]
                metadata = args[1:]
            return build_annotated_key((base_key, *metadata, AllMarker(dependency_key=base_key)))


@overload
def component(target: type[TargetT], /) -> type[TargetT]: ...


@overload
def component(
    target: None = None,
    /,
    *,
    qualifier: str | None = None,
    scope: Scope = Scope.SINGLETON,
    tag: RoleTag = COMPONENT,
) -> Callable[[type[TargetT]], type[TargetT]]: ...


def component(
    target: type[Any] | None = None,
    /,
    *,
    qualifier: str | None = None,
    scope: Scope = Scope.SINGLETON,
    tag: RoleTag = COMPONENT,
) -> Any:
    """Stamp a class as a component.

    Usable bare (``@component``) or with options
    (``@component(qualifier="primary", scope=Scope.PROXY)``). Passing ``tag``
    stamps a custom role tag instead of ``COMPONENT``; the configuration must
    recognize it for the scanner to pick the class up.

    Args:
        target: Class to decorate when used without parentheses.
        qualifier: Optional name distinguishing this component from others of
            the same type.
        scope: ``Scope.SINGLETON`` or ``Scope.PROXY``.
        tag: Role tag stamped on the class.

    """

    def decorator(cls: type[Any]) -> type[Any]:
        return _stamp(cls, tag, qualifier=qualifier, scope=scope)

    if target is None:
        return decorator
    return decorator(target)


def bean(
    target: Callable[..., Any] | None = None,
    /,
    *,
    qualifier: str | None = None,
    scope: Scope = Scope.SINGLETON,
    tag: RoleTag = BEAN,
) -> Any:
    """Stamp a zero-argument method as a factory-product producer.

    The product's qualifier and scope come from these arguments, never from
    the component declaring the method.
    """

    def decorator(function: Callable[..., Any]) -> Callable[..., Any]:
        return _stamp(function, tag, qualifier=qualifier, scope=scope)

    if target is None:
        return decorator
    return decorator(target)


def initializer(target: TargetT) -> TargetT:
    """Designate a classmethod or staticmethod as the component's initializer."""
    return _stamp(target, INITIALIZER)


def post_init(target: TargetT) -> TargetT:
    """Mark a zero-argument method to run right after construction."""
    return _stamp(target, POST_INIT)


def pre_destroy(target: TargetT) -> TargetT:
    """Mark a zero-argument method to run before the instance is discarded."""
    return _stamp(target, PRE_DESTROY)


def startup(target: TargetT) -> TargetT:
    """Mark a method to be invoked once the registry has booted."""
    return _stamp(target, STARTUP)


def _stamp(
    target: Any,
    tag: RoleTag,
    *,
    qualifier: str | None = None,
    scope: Scope | None = None,
) -> Any:
    holder = target.__func__ if isinstance(target, (classmethod, staticmethod)) else target
    existing: frozenset[RoleTag] = vars(holder).get(ROLE_TAGS_ATTR, frozenset())
    setattr(holder, ROLE_TAGS_ATTR, existing | {tag})
    if qualifier is not None:
        setattr(holder, QUALIFIER_ATTR, qualifier)
    if scope is not None:
        setattr(holder, SCOPE_ATTR, scope)
    return target


def declared_role_tags(target: Any) -> frozenset[RoleTag]:
    """Return tags stamped directly on ``target`` (inherited stamps are ignored)."""
    holder = target.__func__ if isinstance(target, (classmethod, staticmethod)) else target
    try:
        namespace = vars(holder)
    except TypeError:
        return frozenset()
    return namespace.get(ROLE_TAGS_ATTR, frozenset())


def declared_qualifier(target: Any) -> str | None:
    holder = target.__func__ if isinstance(target, (classmethod, staticmethod)) else target
    return vars(holder).get(QUALIFIER_ATTR)


def declared_scope(target: Any) -> Scope:
    holder = target.__func__ if isinstance(target, (classmethod, staticmethod)) else target
    return vars(holder).get(SCOPE_ATTR, Scope.SINGLETON)


def is_injected_annotation(annotation: Any) -> bool:
    """Return True when annotation is Annotated[..., InjectedMarker()]."""
    return any(isinstance(item, InjectedMarker) for item in _annotated_metadata(annotation))


def strip_injected_annotation(annotation: Any) -> Any:
    """Strip Injected marker while preserving other Annotated metadata."""
    if not is_injected_annotation(annotation):
        return annotation
    annotation_args = get_args(annotation)
    filtered_metadata = tuple(
        item for item in annotation_args[1:] if not isinstance(item, InjectedMarker)
    )
    if not filtered_metadata:
        return annotation_args[0]
    return build_annotated_key((annotation_args[0], *filtered_metadata))


def is_all_annotation(annotation: Any) -> bool:
    """Return True when annotation is Annotated[..., AllMarker(...)]."""
    return any(isinstance(item, AllMarker) for item in _annotated_metadata(annotation))


def split_qualifier(annotation: Any) -> tuple[Any, str | None]:
    """Return ``(base_type, qualifier)`` for a possibly annotated dependency key.

    Other ``Annotated`` metadata (including ``Injected``/``All`` markers) is
    dropped from the returned base type.
    """
    if get_origin(annotation) is not Annotated:
        return annotation, None
    annotation_args = get_args(annotation)
    qualifier = next(
        (item.value for item in annotation_args[1:] if isinstance(item, Qualifier)),
        None,
    )
    return annotation_args[0], qualifier


def build_annotated_key(params: tuple[object, ...]) -> Any:
    """Return Annotated[...] with a pre-built params tuple (Py 3.10+ compatible)."""
    try:
        return Annotated.__class_getitem__(params)  # type: ignore[attr-defined]
    except AttributeError:
        return Annotated.__getitem__(params)  # type: ignore[attr-defined]


def _annotated_metadata(annotation: Any) -> tuple[Any, ...]:
    if get_origin(annotation) is not Annotated:
        return ()
    annotation_args = get_args(annotation)
    if len(annotation_args) < _ANNOTATED_MARKER_MIN_ARGS:
        return ()
    return annotation_args[1:]
