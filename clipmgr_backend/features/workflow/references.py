"""
Reference resolution for prompt graphs.

The API-format graph carries no output schema, so which input field backs a
node's output has to be configured here per known node kind.
"""

from __future__ import annotations

from typing import Any, Final

from .graph import NodeReference, WorkflowNode, as_reference, lookup_node

MAX_REFERENCE_HOPS: Final[int] = 16

# (class_type, output index) -> input field carrying that output's value
OUTPUT_FIELDS: Final[dict[tuple[str, int], str]] = {
    ("PrimitiveStringMultiline", 0): "value",
    ("PrimitiveString", 0): "value",
    ("PrimitiveInt", 0): "value",
    ("PrimitiveFloat", 0): "value",
    ("PrimitiveBoolean", 0): "value",
    ("INTConstant", 0): "value",
    ("FloatConstant", 0): "value",
    ("StringConstant", 0): "string",
    ("StringConstantMultiline", 0): "string",
    ("Text Multiline", 0): "text",
    ("CR Prompt Text", 0): "prompt",
    ("ImpactWildcardProcessor", 0): "populated_text",
    ("ImpactInt", 0): "value",
    ("ImpactFloat", 0): "value",
    ("Seed (rgthree)", 0): "seed",
}

_PASSTHROUGH_KINDS: Final[frozenset[str]] = frozenset({"Reroute"})


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def _passthrough_reference(node: WorkflowNode) -> NodeReference | None:
    for value in node.fields.values():
        ref = as_reference(value)
        if ref is not None:
            return ref
    return None


def resolve_reference(graph: Any, ref: NodeReference) -> Any | None:
    """
    Resolve `ref` to the scalar its target node outputs.

    Follows chained references and reroute nodes up to MAX_REFERENCE_HOPS.
    Missing targets, unknown (kind, index) pairs and non-scalar fields all
    resolve to None.
    """
    seen: set[tuple[str, int]] = set()
    current: NodeReference | None = ref
    hops = 0
    while current is not None and hops < MAX_REFERENCE_HOPS:
        hops += 1
        key = (current.target_id, current.output_index)
        if key in seen:
            return None
        seen.add(key)

        node = lookup_node(graph, current.target_id)
        if node is None:
            return None
        if node.kind in _PASSTHROUGH_KINDS:
            current = _passthrough_reference(node)
            continue

        field_name = OUTPUT_FIELDS.get((node.kind, current.output_index))
        if field_name is None:
            return None
        value = node.get(field_name)
        nested = as_reference(value)
        if nested is not None:
            current = nested
            continue
        return value if _is_scalar(value) else None
    return None


def resolve_value(graph: Any, value: Any) -> Any | None:
    """Literal scalars pass through, references are resolved, the rest is None."""
    ref = as_reference(value)
    if ref is not None:
        return resolve_reference(graph, ref)
    return value if _is_scalar(value) else None
