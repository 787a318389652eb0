"""Throttling interceptor for an operation namespace."""

import functools
import inspect
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from skybot.infrastructure.xrpc.namespace import RESERVED_NAMES, OperationGroup


class IThrottle(Protocol):
    """Anything that can hand out request tokens."""

    async def acquire(self, tokens: int = 1) -> None:
        ...


def _throttled(operation: Callable[..., Any], throttle: IThrottle) -> Callable[..., Any]:
    @functools.wraps(operation)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        await throttle.acquire(1)
        result = operation(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    return wrapper


def throttle_operations(
    group: Mapping[str, Any], throttle: IThrottle, name: str | None = None
) -> OperationGroup:
    """Return a copy of ``group`` where every operation first takes a token.

    The tree is walked structurally, so any operation reachable from
    ``group`` is covered regardless of its name or depth. Reserved
    bookkeeping nodes are carried over untouched. The source tree is not
    modified.
    """
    if name is None:
        name = group.name if isinstance(group, OperationGroup) else ""

    children: dict[str, Any] = {}
    for key, node in group.items():
        if key in RESERVED_NAMES:
            children[key] = node
        elif isinstance(node, Mapping):
            child_name = f"{name}.{key}" if name else key
            children[key] = throttle_operations(node, throttle, child_name)
        elif callable(node):
            children[key] = _throttled(node, throttle)
        else:
            children[key] = node

    return OperationGroup(name, children)
