"""Commands implemented by the shell itself."""

from .builtin import register_builtin_commands
from .registry import BuiltinContext, BuiltinDescriptor, BuiltinHandler, BuiltinRegistry


def create_builtin_registry() -> BuiltinRegistry:
    """Return a registry holding every builtin command."""
    registry = BuiltinRegistry()
    register_builtin_commands(registry)
    return registry


__all__ = [
    "BuiltinContext",
    "BuiltinDescriptor",
    "BuiltinHandler",
    "BuiltinRegistry",
    "create_builtin_registry",
    "register_builtin_commands",
]
