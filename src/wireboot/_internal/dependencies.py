from __future__ import annotations

import collections.abc
import inspect
from collections.abc import Callable
from dataclasses import dataclass
from inspect import Parameter
from typing import Any, ClassVar, get_args, get_origin, get_type_hints

from wireboot._internal.descriptors import NO_DEFAULT, DependencyRequirement
from wireboot._internal.markers import (
    is_all_annotation,
    is_injected_annotation,
    split_qualifier,
    strip_injected_annotation,
)
from wireboot.exceptions import WireBootInvalidComponentError

_MISSING_ANNOTATION: Any = object()
_IMPLICIT_FIRST_PARAMETER_NAMES = {"self", "cls"}
_COLLECTION_ORIGINS: tuple[Any, ...] = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Collection,
    collections.abc.Iterable,
)


@dataclass(slots=True)
class RequirementsExtractor:
    """Extract dependency requirements from initializers, members and methods."""

    def extract_from_initializer(
        self,
        initializer: Callable[..., Any],
        *,
        owner_name: str,
    ) -> list[DependencyRequirement]:
        """Extract constructor requirements, in parameter order.

        Args:
            initializer: The class itself or a bound classmethod/staticmethod.
            owner_name: Component name used in error messages.

        """
        return self._extract(
            provider=initializer,
            provider_name=owner_name,
            skip_first_parameter=False,
        )

    def extract_from_callable(
        self,
        provider: Callable[..., Any],
        *,
        owner_name: str,
    ) -> list[DependencyRequirement]:
        """Extract requirements of a bound method or plain function; every parameter counts."""
        return self._extract(
            provider=provider,
            provider_name=owner_name,
            skip_first_parameter=False,
        )

    def extract_injected_members(self, component_type: type[Any]) -> list[DependencyRequirement]:
        """Extract ``Injected[...]`` class annotations as member requirements."""
        try:
            annotations = get_type_hints(component_type, include_extras=True)
        except (AttributeError, NameError, TypeError):
            # Unresolvable forward references cannot be Injected[...] markers we can act on.
            annotations = {
                name: annotation
                for klass in reversed(component_type.__mro__)
                for name, annotation in vars(klass).get("__annotations__", {}).items()
                if not isinstance(annotation, str)
            }

        return [
            self.requirement_for(name=name, annotation=annotation, default=NO_DEFAULT)
            for name, annotation in annotations.items()
            if get_origin(annotation) is not ClassVar and is_injected_annotation(annotation)
        ]

    def extract_return_type(self, producer: Callable[..., Any], *, owner_name: str) -> Any:
        """Return the declared product type of a ``@bean`` producer."""
        provider_name = f"{owner_name}.{producer.__name__}"
        parameters = self._provider_parameters(provider=producer, skip_first_parameter=True)
        if parameters:
            msg = f"Factory product producer '{provider_name}' must take no arguments."
            raise WireBootInvalidComponentError(msg)

        try:
            return_annotation = get_type_hints(producer, include_extras=True).get(
                "return",
                _MISSING_ANNOTATION,
            )
        except (AttributeError, NameError, TypeError) as error:
            msg = f"Unable to read return annotation of producer '{provider_name}': {error}"
            raise WireBootInvalidComponentError(msg) from error

        if return_annotation is _MISSING_ANNOTATION or return_annotation is None:
            msg = f"Factory product producer '{provider_name}' needs a return annotation."
            raise WireBootInvalidComponentError(msg)
        product_type, _ = split_qualifier(return_annotation)
        return product_type

    def _extract(
        self,
        *,
        provider: Callable[..., Any],
        provider_name: str,
        skip_first_parameter: bool,
    ) -> list[DependencyRequirement]:
        parameters = self._provider_parameters(
            provider=provider,
            skip_first_parameter=skip_first_parameter,
        )
        annotations, annotation_error = self._resolved_type_hints(provider)
        requirements: list[DependencyRequirement] = []

        for parameter in parameters:
            if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
                continue
            annotation = self._resolve_parameter_annotation(
                parameter=parameter,
                annotations=annotations,
                annotation_error=annotation_error,
                provider_name=provider_name,
            )
            if annotation is _MISSING_ANNOTATION:
                continue
            requirements.append(
                self.requirement_for(
                    name=parameter.name,
                    annotation=annotation,
                    default=parameter.default
                    if parameter.default is not Parameter.empty
                    else NO_DEFAULT,
                ),
            )

        return requirements

    def requirement_for(
        self,
        *,
        name: str,
        annotation: Any,
        default: Any = NO_DEFAULT,
    ) -> DependencyRequirement:
        """Build the requirement a parameter or member annotated with ``annotation`` expresses."""
        if is_all_annotation(annotation):
            target_type, qualifier = split_qualifier(strip_injected_annotation(annotation))
            return DependencyRequirement(
                target_type=target_type,
                qualifier=qualifier,
                is_collection=True,
                name=name,
                default=default,
            )

        target_type, qualifier = split_qualifier(strip_injected_annotation(annotation))
        collection_args = get_args(target_type)
        if get_origin(target_type) in _COLLECTION_ORIGINS and len(collection_args) == 1:
            item_type, item_qualifier = split_qualifier(collection_args[0])
            return DependencyRequirement(
                target_type=item_type,
                qualifier=qualifier or item_qualifier,
                is_collection=True,
                name=name,
                default=default,
            )

        return DependencyRequirement(
            target_type=target_type,
            qualifier=qualifier,
            name=name,
            default=default,
        )

    def _resolve_parameter_annotation(
        self,
        *,
        parameter: Parameter,
        annotations: dict[str, Any],
        annotation_error: Exception | None,
        provider_name: str,
    ) -> Any:
        annotation = annotations.get(parameter.name, _MISSING_ANNOTATION)
        if annotation is not _MISSING_ANNOTATION:
            return annotation

        raw_annotation = parameter.annotation
        if raw_annotation is not Parameter.empty and not isinstance(raw_annotation, str):
            return raw_annotation

        if parameter.default is not Parameter.empty:
            return _MISSING_ANNOTATION

        error_message = (
            f"Unable to infer dependency for required parameter '{parameter.name}' "
            f"in '{provider_name}'. Add a type annotation."
        )
        if annotation_error is None:
            raise WireBootInvalidComponentError(error_message)
        msg = f"{error_message} Original annotation error: {annotation_error}"
        raise WireBootInvalidComponentError(msg) from annotation_error

    def _provider_parameters(
        self,
        *,
        provider: Callable[..., Any],
        skip_first_parameter: bool,
    ) -> tuple[Parameter, ...]:
        parameters = tuple(inspect.signature(provider).parameters.values())
        if (
            skip_first_parameter
            and parameters
            and parameters[0].name in _IMPLICIT_FIRST_PARAMETER_NAMES
        ):
            return parameters[1:]
        return parameters

    def _resolved_type_hints(
        self,
        provider: Callable[..., Any],
    ) -> tuple[dict[str, Any], Exception | None]:
        # For classes, parameter hints live on __init__; class-level hints are members.
        target = provider.__init__ if inspect.isclass(provider) else provider
        try:
            return get_type_hints(target, include_extras=True), None
        except (AttributeError, NameError, TypeError) as error:
            return {}, error
