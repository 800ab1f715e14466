"""
Generation parameter extraction from an embedded ComfyUI prompt graph.

Nodes are visited in the graph's declared order and handed to the handler
registered for their `class_type` in NODE_HANDLERS. Several rules are
"first match wins" (text encoder prompt, checkpoint model), others
overwrite (wildcard prompt, sampler fields), so reordering a graph can change
the result. Unknown kinds are ignored.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ...config import NEGATIVE_PROMPT_MARKERS
from ...shared import get_logger
from ...utils import to_number
from .graph import WorkflowNode, iter_nodes
from .parameters import ExtractedParameters, LoraEntry
from .references import resolve_value

logger = get_logger(__name__)

MIN_PROMPT_LENGTH = 10
LORA_NONE_SENTINEL = "none"
HIGH_NOISE_MARKER = "HIGH"


@dataclass
class _ExtractionState:
    prompt: str | None = None
    negative_prompt: str | None = None
    model: str | None = None
    loras: list[LoraEntry] = field(default_factory=list)
    steps: int | float | None = None
    cfg: int | float | None = None
    seed: int | float | None = None
    sampler: str | None = None
    scheduler: str | None = None
    resolution: str | None = None
    frame_rate: int | float | None = None
    num_frames: int | float | None = None
    vae_model: str | None = None
    clip_model: str | None = None
    aspect_ratio: str | None = None

    def freeze(self) -> ExtractedParameters:
        return ExtractedParameters(
            prompt=self.prompt,
            negative_prompt=self.negative_prompt,
            model=self.model,
            loras=tuple(self.loras),
            steps=self.steps,
            cfg=self.cfg,
            seed=self.seed,
            sampler=self.sampler,
            scheduler=self.scheduler,
            resolution=self.resolution,
            frame_rate=self.frame_rate,
            num_frames=self.num_frames,
            vae_model=self.vae_model,
            clip_model=self.clip_model,
            aspect_ratio=self.aspect_ratio,
        )


@dataclass
class _Walk:
    graph: Mapping[str, Any]
    negative_markers: tuple[str, ...]
    state: _ExtractionState = field(default_factory=_ExtractionState)

    def text(self, node: WorkflowNode, name: str) -> str | None:
        value = resolve_value(self.graph, node.get(name))
        if isinstance(value, str) and value.strip():
            return value
        return None

    def number(self, node: WorkflowNode, name: str) -> int | float | None:
        return to_number(resolve_value(self.graph, node.get(name)))

    def first_number(self, node: WorkflowNode, names: Iterable[str]) -> int | float | None:
        for name in names:
            value = self.number(node, name)
            if value is not None:
                return value
        return None

    def is_negative(self, text: str) -> bool:
        folded = text.casefold()
        return any(marker.casefold() in folded for marker in self.negative_markers)


NodeHandler = Callable[[_Walk, WorkflowNode], None]


def _format_dimension(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# Prompts

def _text_encoder(walk: _Walk, node: WorkflowNode) -> None:
    text = walk.text(node, "text")
    if text is None:
        return
    state = walk.state
    # Only the positive slot is first-wins; negatives are read in any order.
    if walk.is_negative(text):
        state.negative_prompt = text
    elif len(text) > MIN_PROMPT_LENGTH and state.prompt is None:
        state.prompt = text


def _wildcard_processor(walk: _Walk, node: WorkflowNode) -> None:
    text = walk.text(node, "populated_text")
    if text is not None:
        walk.state.prompt = text


# Models

def _primary_model_loader(walk: _Walk, node: WorkflowNode) -> None:
    name = walk.text(node, "model")
    if name is None:
        return
    if walk.state.model is None or HIGH_NOISE_MARKER in name:
        walk.state.model = name


def _gguf_unet_loader(walk: _Walk, node: WorkflowNode) -> None:
    name = walk.text(node, "unet_name")
    if name is None:
        return
    current = walk.state.model
    if current is None:
        walk.state.model = name
    elif name not in current:
        # High/low noise pairs are declared as two loaders.
        walk.state.model = f"{current} + {name}"


def _checkpoint_loader(walk: _Walk, node: WorkflowNode) -> None:
    name = walk.text(node, "ckpt_name")
    if name is not None and walk.state.model is None:
        walk.state.model = name


def _vae_loader(walk: _Walk, node: WorkflowNode) -> None:
    name = walk.text(node, "model_name") or walk.text(node, "vae_name")
    if name is not None:
        walk.state.vae_model = name


def _clip_loader(walk: _Walk, node: WorkflowNode) -> None:
    name = walk.text(node, "clip_name")
    if name is not None:
        walk.state.clip_model = name


# LoRAs

def _lora_selector(walk: _Walk, node: WorkflowNode) -> None:
    name = walk.text(node, "lora")
    if name is None or name == LORA_NONE_SENTINEL:
        return
    strength = walk.first_number(node, ("strength", "strength_0"))
    walk.state.loras.append(LoraEntry(name, float(strength) if strength is not None else 1.0))


def _lora_loader(walk: _Walk, node: WorkflowNode) -> None:
    name = walk.text(node, "lora_name")
    if name is None:
        return
    strength = walk.first_number(node, ("strength_model", "strength_clip"))
    walk.state.loras.append(LoraEntry(name, float(strength) if strength is not None else 1.0))


def _lora_manager_items(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        value = value.get("__value__")
    return list(value) if isinstance(value, list) else []


def _lora_manager(walk: _Walk, node: WorkflowNode) -> None:
    for item in _lora_manager_items(node.get("loras")):
        if not isinstance(item, Mapping) or item.get("active") is False:
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            continue
        strength = to_number(item.get("strength"))
        walk.state.loras.append(LoraEntry(name, float(strength) if strength is not None else 1.0))


# Sampling

def _sampler(walk: _Walk, node: WorkflowNode) -> None:
    state = walk.state
    steps = walk.number(node, "steps")
    if steps is not None:
        state.steps = steps
    cfg = walk.number(node, "cfg")
    if cfg is not None:
        state.cfg = cfg
    seed = walk.first_number(node, ("seed", "noise_seed"))
    if seed is not None:
        state.seed = seed
    sampler_name = walk.text(node, "sampler_name")
    if sampler_name is not None:
        state.sampler = sampler_name
    scheduler = walk.text(node, "scheduler")
    if scheduler is not None:
        state.scheduler = scheduler


# Video settings

def _video_combine(walk: _Walk, node: WorkflowNode) -> None:
    frame_rate = walk.number(node, "frame_rate")
    if frame_rate:
        walk.state.frame_rate = frame_rate


def _empty_embeds(walk: _Walk, node: WorkflowNode) -> None:
    frames = walk.first_number(node, ("num_frames", "length"))
    if frames:
        walk.state.num_frames = frames
    width = walk.number(node, "width")
    height = walk.number(node, "height")
    if width and height:
        walk.state.resolution = f"{_format_dimension(width)}x{_format_dimension(height)}"


def _aspect_ratio(walk: _Walk, node: WorkflowNode) -> None:
    ratio = walk.text(node, "aspect_ratio")
    if ratio is not None:
        walk.state.aspect_ratio = ratio


NODE_HANDLERS: dict[str, NodeHandler] = {
    "CLIPTextEncode": _text_encoder,
    "ImpactWildcardProcessor": _wildcard_processor,
    "WanVideoModelLoader": _primary_model_loader,
    "UnetLoaderGGUF": _gguf_unet_loader,
    "CheckpointLoaderSimple": _checkpoint_loader,
    "WanVideoLoraSelect": _lora_selector,
    "WanVideoLoraSelectMulti": _lora_selector,
    "LoraLoader": _lora_loader,
    "LoraLoaderModelOnly": _lora_loader,
    "Lora Loader (LoraManager)": _lora_manager,
    "WanVideoSampler": _sampler,
    "KSampler": _sampler,
    "KSamplerAdvanced": _sampler,
    "WanVideoVAELoader": _vae_loader,
    "VAELoader": _vae_loader,
    "CLIPLoader": _clip_loader,
    "VHS_VideoCombine": _video_combine,
    "WanVideoEmptyEmbeds": _empty_embeds,
    "EmptyHunyuanLatentVideo": _empty_embeds,
    "Width and height from aspect ratio 🦴": _aspect_ratio,
}


def _ignore(_walk: _Walk, _node: WorkflowNode) -> None:
    return None


def extract_parameters(graph: Any, negative_markers: Iterable[str] | None = None) -> ExtractedParameters:
    """
    Walk `graph` and return the generation parameters it declares.

    Never raises: a missing or non-mapping graph yields an empty record, and a
    node whose handler trips over unexpected data is skipped.
    """
    if not isinstance(graph, Mapping) or not graph:
        return ExtractedParameters()

    markers = tuple(negative_markers) if negative_markers is not None else NEGATIVE_PROMPT_MARKERS
    walk = _Walk(graph=graph, negative_markers=markers)
    for node in iter_nodes(graph):
        handler = NODE_HANDLERS.get(node.kind, _ignore)
        try:
            handler(walk, node)
        except Exception as exc:
            logger.debug("Skipping node %s (%s): %s", node.node_id, node.kind, exc)

    params = walk.state.freeze()
    logger.debug(
        "Parsed workflow: %d nodes, prompt=%s model=%s loras=%d steps=%s",
        len(graph),
        params.prompt is not None,
        params.model is not None,
        len(params.loras),
        params.steps,
    )
    return params
