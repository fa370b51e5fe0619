import logging
from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel
from gifrot.config.models import ResumeMode
from gifrot.domain.errors import ProbeError
from gifrot.domain.models import SegmentJob, SegmentPlan, VideoEntry
from gifrot.infrastructure.ffprobe import FFprobeAdapter
from gifrot.pipeline.completion import CompletionOracle

class SkipReason(str, Enum):
    ALREADY_COMPLETE = "already_complete"
    PROBE_FAILED = "probe_failed"
    EMPTY = "empty"

class PlanResult(BaseModel):
    video: VideoEntry
    plan: Optional[SegmentPlan] = None
    job: Optional[SegmentJob] = None
    skip_reason: Optional[SkipReason] = None
    detail: str = ""

    @property
    def skipped(self) -> bool:
        return self.job is None

class SegmentPlanner:
    """Turns a discovered video into its first SegmentJob, or a skip."""

    def __init__(
        self,
        ffprobe_adapter: FFprobeAdapter,
        oracle: CompletionOracle,
        output_root: Path,
        segment_duration: int,
        resume_mode: ResumeMode = ResumeMode.COARSE,
    ):
        self.ffprobe_adapter = ffprobe_adapter
        self.oracle = oracle
        self.output_root = Path(output_root)
        self.segment_duration = segment_duration
        self.resume_mode = resume_mode
        self.logger = logging.getLogger(__name__)

    def output_dir_for(self, video: VideoEntry) -> Path:
        return self.output_root / video.name

    def _skip(self, video: VideoEntry, reason: SkipReason, detail: str, plan: Optional[SegmentPlan] = None) -> PlanResult:
        self.logger.info(f"PLAN_SKIP: {video.path.name} reason={reason.value} {detail}".rstrip())
        return PlanResult(video=video, plan=plan, skip_reason=reason, detail=detail)

    def plan(self, video: VideoEntry) -> PlanResult:
        output_dir = self.output_dir_for(video)

        # Coarse resume needs no duration, so finished videos are never probed
        if self.resume_mode == ResumeMode.COARSE and self.oracle.is_complete(output_dir):
            return self._skip(video, SkipReason.ALREADY_COMPLETE, f"(artifacts present in {output_dir})")

        try:
            duration = self.ffprobe_adapter.get_duration(video.path)
        except ProbeError as e:
            self.logger.error(f"Probe failed for {video.path}: {e}")
            return self._skip(video, SkipReason.PROBE_FAILED, str(e))

        plan = SegmentPlan.for_duration(video, duration, self.segment_duration)
        if plan.total_segments < 1:
            return self._skip(video, SkipReason.EMPTY, f"(duration={duration}s)", plan=plan)

        if self.resume_mode == ResumeMode.STRICT and self.oracle.is_fully_complete(
            output_dir, video.name, plan.total_segments
        ):
            return self._skip(video, SkipReason.ALREADY_COMPLETE, f"({plan.total_segments} parts present)", plan=plan)

        job = SegmentJob(
            video=video,
            output_dir=output_dir,
            segment_index=0,
            total_segments=plan.total_segments,
            segment_duration=self.segment_duration,
        )
        self.logger.info(
            f"PLAN: {video.path.name} duration={duration}s segments={plan.total_segments}"
        )
        return PlanResult(video=video, plan=plan, job=job)
