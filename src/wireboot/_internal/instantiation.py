from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from wireboot._internal.descriptors import ComponentDescriptor, ProductDescriptor
from wireboot._internal.proxy import build_proxy
from wireboot.exceptions import (
    WireBootFactoryProductError,
    WireBootInstantiationError,
    WireBootLifecycleHookError,
)
from wireboot.scope import ComponentState, Scope

logger = logging.getLogger(__name__)


class InstantiationService:
    """Create, initialize and destroy component instances.

    ``instantiate``, ``create_product`` and ``destroy`` mutate the given
    descriptor in place: ``instance`` is set on success and cleared by
    ``destroy``. Proxy-scoped descriptors get their proxy on first creation;
    later re-creations reuse it. ``build`` and ``produce`` return a fresh
    object and leave the descriptor alone.
    """

    def instantiate(
        self,
        descriptor: ComponentDescriptor,
        constructor_arguments: Sequence[Any],
        member_values: Mapping[str, Any],
    ) -> None:
        """Create the descriptor's instance and install it.

        Args:
            descriptor: Component to create.
            constructor_arguments: Resolved values in initializer parameter order.
            member_values: Resolved ``Injected[...]`` members by attribute name.

        Raises:
            WireBootInstantiationError: If the initializer raises, the argument
                count does not match, or the descriptor wraps a pre-supplied
                instance that cannot be re-created.
            WireBootLifecycleHookError: If the post-init hook raises.

        """
        descriptor.instance = self.build(descriptor, constructor_arguments, member_values)
        self._install(descriptor)

    def build(
        self,
        descriptor: ComponentDescriptor,
        constructor_arguments: Sequence[Any],
        member_values: Mapping[str, Any],
    ) -> Any:
        """Invoke the designated initializer, inject members and run post-init."""
        if descriptor.initializer is None:
            msg = f"Pre-supplied component '{descriptor.name}' cannot be re-created."
            raise WireBootInstantiationError(msg, component_type=descriptor.component_type)

        args, kwargs = self._bind_arguments(descriptor, constructor_arguments)
        try:
            instance = descriptor.initializer(*args, **kwargs)
        except Exception as error:
            msg = f"Cannot instantiate '{descriptor.name}': {error!r}"
            raise WireBootInstantiationError(msg, component_type=descriptor.component_type) from error

        for name, value in member_values.items():
            setattr(instance, name, value)

        self._run_post_init(descriptor, instance)
        return instance

    def create_product(self, descriptor: ProductDescriptor) -> None:
        """Produce the product from its parent's live instance and install it.

        Raises:
            WireBootFactoryProductError: If the parent has no live instance or
                the producer raises.
            WireBootLifecycleHookError: If the product's post-init hook raises.

        """
        descriptor.instance = self.produce(descriptor)
        self._install(descriptor)

    def produce(self, descriptor: ProductDescriptor) -> Any:
        parent_instance = descriptor.parent.instance
        if parent_instance is None:
            msg = (
                f"Cannot produce '{descriptor.name}': parent component "
                f"'{descriptor.parent.name}' has no live instance."
            )
            raise WireBootFactoryProductError(msg, component_type=descriptor.component_type)

        try:
            instance = descriptor.producer(parent_instance)
        except Exception as error:
            msg = (
                f"Factory product '{descriptor.parent.name}.{descriptor.producer.__name__}' "
                f"failed: {error!r}"
            )
            raise WireBootFactoryProductError(msg, component_type=descriptor.component_type) from error

        self._run_post_init(descriptor, instance)
        return instance

    def destroy(self, descriptor: ComponentDescriptor) -> WireBootLifecycleHookError | None:
        """Run the pre-destroy hook (best effort) and clear the instance.

        Returns:
            The hook failure, if any. It is logged, never raised.

        """
        failure: WireBootLifecycleHookError | None = None
        if descriptor.pre_destroy is not None and descriptor.instance is not None:
            try:
                descriptor.pre_destroy(descriptor.instance)
            except Exception as error:
                logger.warning(
                    "Pre-destroy hook of '%s' failed; destroying anyway",
                    descriptor.name,
                    exc_info=True,
                )
                failure = WireBootLifecycleHookError(
                    f"Pre-destroy hook of '{descriptor.name}' failed: {error!r}",
                    hook_name=descriptor.pre_destroy.__name__,
                    descriptor=descriptor,
                )
                failure.__cause__ = error

        descriptor.instance = None
        descriptor.state = ComponentState.DESTROYED
        logger.debug("Destroyed %r", descriptor)
        return failure

    def _run_post_init(self, descriptor: ComponentDescriptor, instance: Any) -> None:
        if descriptor.post_init is None:
            return
        try:
            descriptor.post_init(instance)
        except Exception as error:
            msg = f"Post-init hook of '{descriptor.name}' failed: {error!r}"
            raise WireBootLifecycleHookError(
                msg,
                hook_name=descriptor.post_init.__name__,
                descriptor=descriptor,
            ) from error

    def _install(self, descriptor: ComponentDescriptor) -> None:
        if descriptor.scope is Scope.PROXY and descriptor.proxy_instance is None:
            descriptor.proxy_instance = build_proxy(descriptor)
        descriptor.state = ComponentState.INSTANTIATED
        logger.debug("Instantiated %r", descriptor)

    def _bind_arguments(
        self,
        descriptor: ComponentDescriptor,
        constructor_arguments: Sequence[Any],
    ) -> tuple[list[Any], dict[str, Any]]:
        requirements = descriptor.constructor_dependencies
        if len(constructor_arguments) != len(requirements):
            msg = (
                f"Invalid parameters count for '{descriptor.name}': expected "
                f"{len(requirements)}, got {len(constructor_arguments)}."
            )
            raise WireBootInstantiationError(msg, component_type=descriptor.component_type)

        # Parameters skipped during extraction keep their defaults, so bind the rest by name.
        parameters = inspect.signature(descriptor.initializer).parameters
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for requirement, value in zip(requirements, constructor_arguments, strict=True):
            if parameters[requirement.name].kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[requirement.name] = value
        return args, kwargs
