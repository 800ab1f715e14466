"""Typed read-only view over a ComfyUI prompt graph (API format)."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class NodeReference:
    """A field value wired to another node's output: `[target_id, output_index]`."""

    target_id: str
    output_index: int


@dataclass(frozen=True)
class WorkflowNode:
    node_id: str
    kind: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    title: str | None = None

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _looks_like_node_id(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, int):
        return True
    if not isinstance(value, str):
        return False
    s = value.strip()
    if not s:
        return False
    # Subgraph ids look like "12:3".
    parts = s.split(":")
    return all(p.isdigit() for p in parts if p != "")


def as_reference(value: Any) -> NodeReference | None:
    """Return the reference encoded by `value`, or None for anything else."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    target, index = value[0], value[1]
    if not _looks_like_node_id(target):
        return None
    out_index = _to_int(index)
    if out_index is None:
        return None
    return NodeReference(str(target).strip(), out_index)


def node_view(node_id: Any, raw: Any) -> WorkflowNode | None:
    """Build a WorkflowNode from a raw record; None when it is not node-like."""
    if not isinstance(raw, Mapping):
        return None
    inputs = raw.get("inputs")
    if not isinstance(inputs, Mapping):
        return None
    kind = raw.get("class_type")
    if not isinstance(kind, str):
        kind = ""
    meta = raw.get("_meta")
    title = meta.get("title") if isinstance(meta, Mapping) else None
    return WorkflowNode(
        node_id=str(node_id),
        kind=kind,
        fields=inputs,
        title=title if isinstance(title, str) else None,
    )


def iter_nodes(graph: Any) -> Iterator[WorkflowNode]:
    """Yield node views in the graph's declared (insertion) order."""
    if not isinstance(graph, Mapping):
        return
    for node_id, raw in graph.items():
        node = node_view(node_id, raw)
        if node is not None:
            yield node


def lookup_node(graph: Any, node_id: str) -> WorkflowNode | None:
    if not isinstance(graph, Mapping):
        return None
    raw = graph.get(node_id)
    if raw is None and node_id.isdigit():
        # Some exporters key nodes by int.
        raw = graph.get(int(node_id))
    return node_view(node_id, raw)
