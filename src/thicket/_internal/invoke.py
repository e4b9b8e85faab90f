"""Invoke helpers — call sync or async handlers uniformly.

thicket handlers, filters, and targets can be ``def`` or ``async def``.
Any code that calls user-provided code must handle both cases. This module
keeps the sync/async check and the argument resolution in one place.

Usage::

    from thicket._internal.invoke import invoke, resolve_arguments

    args, kwargs = resolve_arguments(handler, request)
    result = await invoke(handler, *args, **kwargs)
"""

import inspect
from typing import Any

from thicket.http.request import Request


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine.

    Works with both sync and async callables::

        # sync: returns immediately, no await needed
        def about():
            return "about"

        # async: returns a coroutine, awaited automatically
        async def about():
            data = await fetch_data()
            return data
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def _convert(value: str, annotation: Any) -> Any:
    """Convert a captured string to the annotated type if possible."""
    if annotation is inspect.Parameter.empty or annotation is str:
        return value
    try:
        return annotation(value)
    except (ValueError, TypeError):
        return value


def resolve_arguments(
    func: Any,
    request: Request,
    *,
    response: Any = None,
) -> tuple[list[Any], dict[str, Any]]:
    """Inspect *func*'s signature and build its arguments from the request.

    Resolution order per parameter:
    1. ``request`` (by name or ``Request`` annotation)
    2. ``ctx`` — the dispatching controller's shared ``Context``
    3. ``response`` — the current response (after-filters only)
    4. Named captures (by name, with type conversion)
    5. Positional captures, in order, for the remaining positional parameters

    Parameters that resolve to nothing are left to their defaults.
    """
    sig = inspect.signature(func, eval_str=True)
    captures = request.captures
    named: dict[str, str] = captures if isinstance(captures, dict) else {}
    positional: list[str] = list(captures) if isinstance(captures, list) else []

    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    # Once a positional parameter is left to its default, later ones go by name
    gap = False

    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            if not gap:
                args.extend(positional)
                positional = []
            continue
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            for key, value in named.items():
                kwargs.setdefault(key, value)
            continue

        if name == "request" or param.annotation is Request:
            value = request
        elif name == "ctx":
            value = request.context
        elif name == "response" and response is not None:
            value = response
        elif name in named:
            value = _convert(named[name], param.annotation)
        elif positional and param.kind is not inspect.Parameter.KEYWORD_ONLY:
            value = _convert(positional.pop(0), param.annotation)
        else:
            if param.kind is not inspect.Parameter.KEYWORD_ONLY:
                gap = True
            continue

        if param.kind is inspect.Parameter.KEYWORD_ONLY or (
            gap and param.kind is not inspect.Parameter.POSITIONAL_ONLY
        ):
            kwargs[name] = value
        else:
            args.append(value)

    return args, kwargs
