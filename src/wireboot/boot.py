from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from wireboot._internal.dependencies import RequirementsExtractor
from wireboot._internal.descriptors import ComponentDescriptor
from wireboot._internal.instantiation import InstantiationService
from wireboot._internal.markers import STARTUP
from wireboot._internal.resolution import ResolutionEngine
from wireboot._internal.scanner import ComponentScanner
from wireboot.configuration import Configuration
from wireboot.exceptions import WireBootComponentNotFoundError
from wireboot.locators import ClassLocator, StaticClassLocator
from wireboot.registry import Registry

logger = logging.getLogger(__name__)


def bootstrap(
    source: ClassLocator | Iterable[type[Any]],
    configuration: Configuration | None = None,
    *,
    startup_type: type[Any] | None = None,
) -> Registry:
    """Discover, scan, resolve and register components, then run startup hooks.

    Args:
        source: A class locator, or an iterable of candidate types.
        configuration: Tags, aliases, pre-supplied instances, resolvers and
            settings. Defaults to ``Configuration()``.
        startup_type: Component whose ``@startup`` methods run once the
            registry is ready.

    Returns:
        The initialized registry. Nothing is returned if any step fails: boot
        errors propagate unchanged.

    Examples:
        .. code-block:: python

            registry = bootstrap(
                PackageClassLocator("myapp"),
                Configuration().add_instance(settings),
                startup_type=Application,
            )

    """
    configuration = configuration if configuration is not None else Configuration()
    locator = source if isinstance(source, ClassLocator) else StaticClassLocator(source)

    if configuration.settings.discover_in_thread:
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="wireboot-discovery") as executor:
            located_types = executor.submit(locator.locate).result()
    else:
        located_types = locator.locate()

    descriptors = ComponentScanner(configuration).scan(located_types)
    provided = [
        ComponentDescriptor.for_instance(
            provided_instance.instance,
            provides=provided_instance.provides,
            qualifier=provided_instance.qualifier,
        )
        for provided_instance in configuration.provided_instances
    ]

    instantiation_service = InstantiationService()
    engine = ResolutionEngine(
        instantiation_service,
        max_iterations=configuration.max_iterations,
        resolvers=configuration.resolvers,
    )
    registered = engine.resolve(descriptors, provided)

    registry = Registry()
    registry.init(registered, located_types, instantiation_service)
    logger.info(
        "Booted %d component(s) from %d located type(s)",
        len(registered),
        len(located_types),
    )

    if startup_type is not None:
        run_startup(registry, startup_type, configuration)
    return registry


def run_startup(
    registry: Registry,
    startup_type: type[Any],
    configuration: Configuration | None = None,
) -> list[Any]:
    """Invoke every ``@startup`` method of the registered ``startup_type`` component.

    Method parameters are resolved from the registry the same way constructor
    parameters are.

    Returns:
        The methods' return values, in invocation order.

    Raises:
        WireBootComponentNotFoundError: If ``startup_type`` or a parameter
            cannot be found in the registry.

    """
    descriptor = registry.get_by_type(startup_type)
    if descriptor is None or descriptor.instance is None:
        raise WireBootComponentNotFoundError(startup_type)

    configuration = configuration if configuration is not None else Configuration()
    owner = type(descriptor.instance)
    instance = descriptor.exposed_instance
    scanner = ComponentScanner(configuration)
    extractor = RequirementsExtractor()
    results: list[Any] = []
    for method in scanner.find_tagged_methods(owner, STARTUP):
        # Bound through the instance so static and class methods get the right receiver.
        bound = getattr(instance, method.__name__)
        requirements = extractor.extract_from_callable(
            bound,
            owner_name=f"{owner.__qualname__}.{method.__name__}",
        )
        parameters = inspect.signature(bound).parameters
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for requirement in requirements:
            value = registry.resolve(requirement)
            if parameters[requirement.name].kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[requirement.name] = value
        logger.debug("Running startup method %s.%s", owner.__qualname__, method.__name__)
        results.append(bound(*args, **kwargs))
    return results


__all__ = ["bootstrap", "run_startup"]
