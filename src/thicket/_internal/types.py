"""Shared type aliases used across thicket modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: user-defined function with variable signature
Handler: TypeAlias = Callable[..., Any]

# Mapping target: called as ``target(request)``, or a nested Controller
Target: TypeAlias = Any

# Condition predicate: receives (argument, request) and returns a bool
Predicate: TypeAlias = Callable[[Any, Any], bool]

# Error handler: receives (request, error?) and returns a response value
ErrorHandler: TypeAlias = Callable[..., Any]
