from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from collections.abc import Iterable
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ClassLocator(Protocol):
    """Supply the candidate types handed to the component scanner."""

    def locate(self) -> list[type[Any]]: ...


class StaticClassLocator:
    """Return a fixed list of types, deduplicated in input order."""

    def __init__(self, types: Iterable[type[Any]]) -> None:
        self._types = list(dict.fromkeys(types))

    def locate(self) -> list[type[Any]]:
        return list(self._types)


class PackageClassLocator:
    """Import a package with all of its submodules and collect their classes.

    Only classes defined in the walked modules are returned; names a module
    merely imports are skipped, so a class shows up once no matter how many
    modules import it.

    Examples:
        .. code-block:: python

            registry = bootstrap(PackageClassLocator("myapp.services"))

    """

    def __init__(self, package: str | ModuleType) -> None:
        self._package = package

    def locate(self) -> list[type[Any]]:
        package = (
            importlib.import_module(self._package)
            if isinstance(self._package, str)
            else self._package
        )
        modules = [package]
        if hasattr(package, "__path__"):
            modules.extend(
                importlib.import_module(module_name)
                for _finder, module_name, _is_package in pkgutil.walk_packages(
                    package.__path__,
                    f"{package.__name__}.",
                )
            )

        located: dict[type[Any], None] = {}
        for module in modules:
            for value in vars(module).values():
                if inspect.isclass(value) and value.__module__ == module.__name__:
                    located[value] = None

        logger.debug("Located %d class(es) in %s", len(located), package.__name__)
        return list(located)


__all__ = ["ClassLocator", "PackageClassLocator", "StaticClassLocator"]
