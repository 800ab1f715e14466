"""Workflow graph feature - parameter extraction from embedded prompt graphs."""
from .embedded import (
    EmbeddedWorkflow,
    build_comfyui_section,
    build_metadata_document,
    read_embedded_workflow,
    workflow_download_body,
)
from .extractor import NODE_HANDLERS, extract_parameters
from .graph import NodeReference, WorkflowNode, as_reference, iter_nodes
from .parameters import ExtractedParameters, LoraEntry
from .references import OUTPUT_FIELDS, resolve_reference, resolve_value

__all__ = [
    "EmbeddedWorkflow",
    "ExtractedParameters",
    "LoraEntry",
    "NODE_HANDLERS",
    "NodeReference",
    "OUTPUT_FIELDS",
    "WorkflowNode",
    "as_reference",
    "build_comfyui_section",
    "build_metadata_document",
    "extract_parameters",
    "iter_nodes",
    "read_embedded_workflow",
    "resolve_reference",
    "resolve_value",
    "workflow_download_body",
]
