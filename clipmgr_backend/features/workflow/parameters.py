"""Generation parameter records produced by the workflow extractor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class LoraEntry:
    name: str
    strength: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "strength": self.strength}


@dataclass(frozen=True)
class ExtractedParameters:
    """
    Flat view of the generation settings recovered from a prompt graph.

    Every member is optional; absence is None (empty tuple for loras).
    """

    prompt: str | None = None
    negative_prompt: str | None = None
    model: str | None = None
    loras: tuple[LoraEntry, ...] = field(default_factory=tuple)
    steps: int | float | None = None
    cfg: int | float | None = None
    seed: int | float | str | None = None
    sampler: str | None = None
    scheduler: str | None = None
    resolution: str | None = None
    frame_rate: int | float | None = None
    num_frames: int | float | None = None
    vae_model: str | None = None
    clip_model: str | None = None
    aspect_ratio: str | None = None

    def is_empty(self) -> bool:
        return self == ExtractedParameters()

    def to_dict(self) -> dict[str, Any]:
        """Document form, using the keys the stored metadata has always used."""
        return {
            "prompt": self.prompt,
            "negativePrompt": self.negative_prompt,
            "model": self.model,
            "loras": [lora.to_dict() for lora in self.loras],
            "steps": self.steps,
            "cfg": self.cfg,
            "seed": self.seed,
            "sampler": self.sampler,
            "scheduler": self.scheduler,
            "resolution": self.resolution,
            "frameRate": self.frame_rate,
            "numFrames": self.num_frames,
            "vaeModel": self.vae_model,
            "clipModel": self.clip_model,
            "aspectRatio": self.aspect_ratio,
        }
