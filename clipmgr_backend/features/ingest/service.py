"""
Analysis pipeline for one uploaded clip.

probe -> metadata document -> heuristic tags -> moderation -> AI tags ->
tag-level illegal check -> merged tags. Storage of the report is the
caller's concern.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from ...shared import ErrorCode, Result, classify_file, get_logger, log_structured
from ..moderation.aggregator import rejected_verdict
from ..moderation.service import ModerationService
from ..moderation.verdict import AggregateVerdict, tags_indicate_illegal_content
from ..tags import AITagger, Tag, aggregate_tags, filename_tags, metric_tags, workflow_tags
from ..video.metadata import VideoBasicMetadata, basic_metadata_from_probe, format_tags_from_probe
from ..workflow.embedded import build_comfyui_section, read_embedded_workflow
from ..workflow.parameters import ExtractedParameters

logger = get_logger(__name__)


class MetadataProbe(Protocol):
    async def aread(self, path: str) -> Result[dict]: ...


@dataclass(frozen=True)
class IngestReport:
    basic: VideoBasicMetadata
    parameters: ExtractedParameters
    document: dict[str, Any]
    moderation: AggregateVerdict
    tags: list[Tag] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.document,
            "moderation": self.moderation.to_dict(),
            "tags": [tag.to_dict() for tag in self.tags],
        }


class IngestService:
    def __init__(self, probe: MetadataProbe, moderation: ModerationService, tagger: AITagger):
        self._probe = probe
        self._moderation = moderation
        self._tagger = tagger

    async def analyze(self, video_path: str, original_name: str) -> Result[IngestReport]:
        """
        Analyze one clip.

        A hard moderation rejection (frame replies or combined tags) yields
        `Result.Err(ErrorCode.REJECTED, ...)` with the verdict in the meta.
        """
        if classify_file(original_name or "") != "video":
            return Result.Err(ErrorCode.INVALID_INPUT, "Only video files are allowed (mp4, mov, avi, webm, mkv)")

        probed = await self._probe.aread(video_path)
        if not probed.ok:
            logger.warning("Metadata probe failed for %s: %s", original_name, probed.error)
            return Result.Err(probed.code, probed.error or "Metadata extraction failed")

        probe = probed.data or {}
        basic = basic_metadata_from_probe(probe)
        embedded = read_embedded_workflow(format_tags_from_probe(probe))
        parameters, section = build_comfyui_section(embedded)
        document = {"basic": basic.to_dict(), "comfyui": section}
        generation_type = section.get("generationType") if section else None

        heuristic = aggregate_tags(
            filename_tags(original_name),
            metric_tags(basic),
            workflow_tags(parameters, generation_type),
        )

        verdict = await self._moderation.moderate(video_path, basic.duration)
        if verdict.rejected:
            return self._rejected(original_name, verdict)

        generated = await self._tagger.generate(video_path, basic.duration)
        merged = aggregate_tags(heuristic, generated)
        if tags_indicate_illegal_content(tag.name for tag in merged):
            return self._rejected(original_name, rejected_verdict())

        log_structured(
            logger,
            logging.INFO,
            "clip analyzed",
            name=original_name,
            rating=verdict.to_dict()["rating"],
            tags=len(merged),
            workflow=bool(section and section.get("workflow")),
        )
        return Result.Ok(IngestReport(basic, parameters, document, verdict, merged))

    @staticmethod
    def _rejected(original_name: str, verdict: AggregateVerdict) -> Result[IngestReport]:
        logger.warning("Clip rejected: %s (%s)", original_name, verdict.reason)
        return Result.Err(ErrorCode.REJECTED, verdict.reason, verdict=verdict)
