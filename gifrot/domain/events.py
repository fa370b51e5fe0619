"""Domain events for the segment pipeline.

Events flow through the EventBus so the pipeline never talks to the console
layer directly. See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from typing import List
from pathlib import Path
from pydantic import BaseModel
from .models import SegmentJob, VideoEntry


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class JobEvent(Event):
    """Base class for events about one segment job."""

    job: SegmentJob


class DiscoveryFinished(Event):
    """Emitted after scanning and planning.

    Counts how many videos were found, queued and skipped.
    """

    videos_dir: Path
    videos_found: int
    videos_queued: int = 0
    already_complete: int = 0
    probe_failed: int = 0


class VideoSkipped(Event):
    """Emitted when planning creates no job for a video."""

    video: VideoEntry
    reason: str


class JobStarted(JobEvent):
    pass


class SegmentEncoded(JobEvent):
    """Emitted when ffmpeg produced the artifact for a job."""

    pass


class PublishRetrying(JobEvent):
    """Emitted before sleeping on a rate-limited publish."""

    attempt: int
    delay_seconds: float


class SegmentPublished(JobEvent):
    pass


class JobAbandoned(JobEvent):
    """Emitted when a job stops early; the chain still advances."""

    error_message: str


class JobCompleted(JobEvent):
    """Emitted after the next-job decision, just before the gate is released."""

    has_successor: bool = False


class QueueUpdated(Event):
    pending_jobs: List[str]


class ProcessingFinished(Event):
    jobs_run: int = 0
