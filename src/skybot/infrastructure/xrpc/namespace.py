"""Hierarchical namespace of remote operations."""

from collections.abc import Iterator, Mapping
from typing import Any

# Bookkeeping nodes living alongside operations; they are never operations.
SERVICE_NODE = "_service"
TRANSPORT_NODE = "_transport"
RESERVED_NAMES = frozenset({SERVICE_NODE, TRANSPORT_NODE})


class OperationGroup(Mapping[str, Any]):
    """A named group of operations and nested groups.

    Children are reachable both as mapping keys and as attributes, so
    ``api["com"]["atproto"]["repo"]["get_record"]`` and
    ``api.com.atproto.repo.get_record`` name the same leaf.
    """

    def __init__(self, name: str = "", children: Mapping[str, Any] | None = None) -> None:
        self._name = name
        self._children: dict[str, Any] = dict(children or {})

    @property
    def name(self) -> str:
        return self._name

    def __getitem__(self, key: str) -> Any:
        return self._children[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __getattr__(self, key: str) -> Any:
        # Only called when normal lookup fails
        if key.startswith("__"):
            raise AttributeError(key)
        try:
            return self.__dict__["_children"][key]
        except KeyError:
            raise AttributeError(
                f"'{self._name or 'root'}' has no operation or group named '{key}'"
            ) from None

    def __repr__(self) -> str:
        return f"OperationGroup({self._name!r}, {sorted(self._children)})"

    def add(self, path: str, node: Any) -> None:
        """Register ``node`` at a dotted ``path``, creating groups on the way."""
        *parents, leaf = path.split(".")
        group = self
        prefix: list[str] = []
        for part in parents:
            prefix.append(part)
            child = group._children.get(part)
            if child is None:
                child = OperationGroup(".".join(prefix))
                group._children[part] = child
            elif not isinstance(child, OperationGroup):
                raise ValueError(f"'{'.'.join(prefix)}' is an operation, not a group")
            group = child
        group._children[leaf] = node

    def walk(self, prefix: str = "") -> Iterator[tuple[str, Any]]:
        """Yield ``(dotted_path, operation)`` for every leaf operation."""
        for key, node in self._children.items():
            if key in RESERVED_NAMES:
                continue
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(node, Mapping):
                if isinstance(node, OperationGroup):
                    yield from node.walk(path)
                else:
                    yield from OperationGroup(path, node).walk(path)
            elif callable(node):
                yield path, node
