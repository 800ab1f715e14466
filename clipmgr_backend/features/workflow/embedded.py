"""
Embedded workflow handling for video containers.

ComfyUI video nodes write the prompt graph into container tags, usually as a
JSON `comment` holding a `prompt` property, sometimes as a bare `prompt` tag.
The graph text is kept exactly as embedded so it can be served back
unchanged; non-finite numbers in it parse as None for extraction.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ...shared import get_logger
from .extractor import extract_parameters
from .parameters import ExtractedParameters

logger = get_logger(__name__)

MAX_EMBEDDED_JSON_SIZE = 10 * 1024 * 1024  # 10MB

_BLANK_LINES_RE = re.compile(r"\n\n+")


@dataclass(frozen=True)
class EmbeddedWorkflow:
    """Graph found in a container: verbatim text plus its parsed form."""

    raw_text: str | None
    graph: dict[str, Any] | None
    source: str
    plain_prompt: str | None = None


def _tag(format_tags: Mapping[str, Any], name: str) -> Any:
    for key, value in format_tags.items():
        if isinstance(key, str) and key.lower() == name:
            return value
    return None


def _non_finite_to_none(_token: str) -> None:
    return None


def _parse_graph_text(text: str) -> dict[str, Any] | None:
    if len(text) > MAX_EMBEDDED_JSON_SIZE:
        logger.warning("Embedded workflow too large (%d bytes), ignoring", len(text))
        return None
    try:
        parsed = json.loads(text, parse_constant=_non_finite_to_none)
    except (TypeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _from_comment(value: Any) -> EmbeddedWorkflow | None:
    if isinstance(value, str):
        try:
            comment = json.loads(value)
        except ValueError:
            return None
    else:
        comment = value
    if not isinstance(comment, Mapping):
        return None

    prompt = comment.get("prompt")
    if isinstance(prompt, str):
        raw_text = prompt
    elif isinstance(prompt, Mapping):
        raw_text = json.dumps(prompt, ensure_ascii=False)
    else:
        return None

    graph = _parse_graph_text(raw_text)
    if graph is None:
        logger.debug("comment.prompt is not a JSON object, ignoring")
        return None
    return EmbeddedWorkflow(raw_text=raw_text, graph=graph, source="comment")


def _from_prompt_tag(value: Any) -> EmbeddedWorkflow | None:
    if isinstance(value, Mapping):
        raw_text = json.dumps(value, ensure_ascii=False)
        return EmbeddedWorkflow(raw_text=raw_text, graph=dict(value), source="prompt")
    if not isinstance(value, str) or not value.strip():
        return None
    graph = _parse_graph_text(value)
    if graph is None:
        # Not a graph: some tools store the positive prompt itself.
        return EmbeddedWorkflow(raw_text=None, graph=None, source="prompt", plain_prompt=value)
    return EmbeddedWorkflow(raw_text=value, graph=graph, source="prompt")


def read_embedded_workflow(format_tags: Any) -> EmbeddedWorkflow | None:
    """Locate the prompt graph in ffprobe `format.tags`; comment wins over prompt."""
    if not isinstance(format_tags, Mapping):
        return None
    comment = _tag(format_tags, "comment")
    if comment is not None:
        found = _from_comment(comment)
        if found is not None:
            return found
    prompt = _tag(format_tags, "prompt")
    if prompt is not None:
        return _from_prompt_tag(prompt)
    return None


def clean_prompt_text(text: str | None) -> str | None:
    if not isinstance(text, str):
        return text
    return _BLANK_LINES_RE.sub("\n", text).strip()


def detect_generation_type(model: str | None) -> str | None:
    if not model:
        return None
    if "T2V" in model or "text" in model:
        return "text-to-video"
    if "I2V" in model or "image" in model:
        return "image-to-video"
    return None


def build_comfyui_section(embedded: EmbeddedWorkflow | None) -> tuple[ExtractedParameters, dict[str, Any] | None]:
    """Extract parameters and build the `comfyui` part of the metadata document."""
    if embedded is None:
        return ExtractedParameters(), None

    params = extract_parameters(embedded.graph)
    section = params.to_dict()
    if params.prompt is None and embedded.plain_prompt:
        section["prompt"] = embedded.plain_prompt
    section["prompt"] = clean_prompt_text(section["prompt"])
    section["generationType"] = detect_generation_type(params.model)
    section["workflow"] = embedded.raw_text
    section["workflowSource"] = embedded.source
    return params, section


def build_metadata_document(basic: Mapping[str, Any], embedded: EmbeddedWorkflow | None) -> dict[str, Any]:
    """Combine technical metadata, the verbatim graph and extracted parameters."""
    _, section = build_comfyui_section(embedded)
    return {"basic": dict(basic), "comfyui": section}


def workflow_download_body(document: Any) -> bytes | None:
    """Raw graph bytes for the "download workflow" feature, or None."""
    if not isinstance(document, Mapping):
        return None
    section = document.get("comfyui")
    if not isinstance(section, Mapping):
        return None
    raw = section.get("workflow")
    if not isinstance(raw, str) or not raw:
        return None
    return raw.encode("utf-8")
