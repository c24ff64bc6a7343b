from wireboot.integrations.pytest_plugin.plugin import (
    _wireboot_state,
    pytest_pycollect_makeitem,
    pytest_pyfunc_call,
    wireboot_registry,
)

__all__ = [
    "_wireboot_state",
    "pytest_pycollect_makeitem",
    "pytest_pyfunc_call",
    "wireboot_registry",
]
