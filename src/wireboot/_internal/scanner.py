from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from typing import Any

from wireboot._internal.dependencies import RequirementsExtractor
from wireboot._internal.descriptors import ComponentDescriptor, FactoryProduct
from wireboot._internal.markers import (
    INITIALIZER,
    POST_INIT,
    PRE_DESTROY,
    RoleTag,
    declared_qualifier,
    declared_role_tags,
    declared_scope,
)
from wireboot._internal.type_checks import is_proxyable_class, is_runtime_class
from wireboot.configuration import Configuration
from wireboot.exceptions import WireBootInvalidComponentError
from wireboot.scope import Scope

logger = logging.getLogger(__name__)


class ComponentScanner:
    """Turn discovered types into component descriptors.

    Only classes carrying a recognized component tag (directly, or through an
    alias registered on the configuration) become components. Input order is
    preserved and duplicates are dropped, so the result is deterministic for a
    deterministic input.
    """

    def __init__(self, configuration: Configuration) -> None:
        self._configuration = configuration
        self._extractor = RequirementsExtractor()

    def scan(self, located_types: Iterable[Any]) -> list[ComponentDescriptor]:
        descriptors: list[ComponentDescriptor] = []
        seen: set[int] = set()
        for candidate in located_types:
            if id(candidate) in seen or not is_runtime_class(candidate):
                continue
            seen.add(id(candidate))
            tags = declared_role_tags(candidate)
            if not self._configuration.is_component(tags):
                continue
            descriptors.append(self.describe(candidate, tags))

        logger.debug("Scanned %d component(s)", len(descriptors))
        return descriptors

    def describe(self, component_type: type[Any], tags: frozenset[RoleTag]) -> ComponentDescriptor:
        if inspect.isabstract(component_type):
            msg = f"Component '{component_type.__qualname__}' cannot be an abstract class."
            raise WireBootInvalidComponentError(msg)

        scope = declared_scope(component_type)
        self._validate_scope(scope, component_type, owner_name=component_type.__qualname__)
        initializer = self._find_initializer(component_type)

        return ComponentDescriptor(
            component_type=component_type,
            initializer=initializer,
            qualifier=declared_qualifier(component_type),
            scope=scope,
            role_tags=self._configuration.canonical_tags(tags),
            post_init=self._find_hook(component_type, POST_INIT),
            pre_destroy=self._find_hook(component_type, PRE_DESTROY),
            constructor_dependencies=self._extractor.extract_from_initializer(
                initializer,
                owner_name=component_type.__qualname__,
            ),
            injected_members=self._extractor.extract_injected_members(component_type),
            factory_products=self._find_factory_products(component_type),
        )

    def find_tagged_methods(self, owner: type[Any], tag: RoleTag) -> list[Callable[..., Any]]:
        """Return functions tagged ``tag`` along the MRO, most-derived definition first."""
        methods: list[Callable[..., Any]] = []
        seen_names: set[str] = set()
        for klass in owner.__mro__:
            for name, member in vars(klass).items():
                if name in seen_names:
                    continue
                seen_names.add(name)
                function = (
                    member.__func__ if isinstance(member, (classmethod, staticmethod)) else member
                )
                if not inspect.isfunction(function):
                    continue
                if self._configuration.has_tag(declared_role_tags(function), tag):
                    methods.append(function)
        return methods

    def _find_initializer(self, component_type: type[Any]) -> Callable[..., Any]:
        for name, member in vars(component_type).items():
            if not isinstance(member, (classmethod, staticmethod)):
                continue
            if self._configuration.has_tag(declared_role_tags(member), INITIALIZER):
                return getattr(component_type, name)
        return component_type

    def _find_hook(self, owner: Any, tag: RoleTag) -> Callable[[Any], Any] | None:
        if not is_runtime_class(owner):
            return None
        hooks = self.find_tagged_methods(owner, tag)
        if not hooks:
            return None
        hook = hooks[0]
        if isinstance(inspect.getattr_static(owner, hook.__name__), (classmethod, staticmethod)):
            msg = (
                f"Lifecycle hook '{owner.__qualname__}.{hook.__name__}' "
                "must be an instance method."
            )
            raise WireBootInvalidComponentError(msg)
        parameters =list(inspect.signature(hook).parameters.values())[1:]
        if any(parameter.default is inspect.Parameter.empty for parameter in parameters):
            msg = (
                f"Lifecycle hook '{owner.__qualname__}.{hook.__name__}' "
                "must be callable without arguments."
            )
            raise WireBootInvalidComponentError(msg)
        return hook

    def _find_factory_products(self, component_type: type[Any]) -> list[FactoryProduct]:
        products: list[FactoryProduct] = []
        seen_names: set[str] = set()
        for klass in component_type.__mro__:
            for name, member in vars(klass).items():
                if name in seen_names:
                    continue
                seen_names.add(name)
                if not inspect.isfunction(member):
                    continue
                tags = declared_role_tags(member)
                if not self._configuration.is_bean(tags):
                    continue
                products.append(self._describe_product(component_type, member, tags))
        return products

    def _describe_product(
        self,
        component_type: type[Any],
        producer: Callable[..., Any],
        tags: frozenset[RoleTag],
    ) -> FactoryProduct:
        product_type = self._extractor.extract_return_type(
            producer,
            owner_name=component_type.__qualname__,
        )
        scope = declared_scope(producer)
        self._validate_scope(
            scope,
            product_type,
            owner_name=f"{component_type.__qualname__}.{producer.__name__}",
        )
        return FactoryProduct(
            name=producer.__name__,
            producer=producer,
            product_type=product_type,
            qualifier=declared_qualifier(producer),
            scope=scope,
            role_tags=self._configuration.canonical_tags(tags),
            post_init=self._find_hook(product_type, POST_INIT),
            pre_destroy=self._find_hook(product_type, PRE_DESTROY),
        )

    def _validate_scope(self, scope: Scope, contract: Any, *, owner_name: str) -> None:
        if scope is Scope.PROXY and not is_proxyable_class(contract):
            msg = (
                f"'{owner_name}' is declared with Scope.PROXY but its type "
                f"{contract!r} cannot be proxied; proxy-scoped components need a "
                "non-builtin class contract."
            )
            raise WireBootInvalidComponentError(msg)
