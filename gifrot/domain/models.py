import math
from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, model_validator

class JobStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABANDONED = "ABANDONED"

class PublishOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    ABANDONED = "ABANDONED"

class VideoEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: Path
    name: str = ""

    @model_validator(mode="before")
    @classmethod
    def derive_name(cls, data):
        if isinstance(data, dict) and not data.get("name") and data.get("path") is not None:
            data = dict(data)
            data["name"] = Path(data["path"]).stem
        return data

class SegmentPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    video: VideoEntry
    duration_seconds: float
    segment_duration: int
    total_segments: int

    @classmethod
    def for_duration(cls, video: VideoEntry, duration_seconds: float, segment_duration: int) -> "SegmentPlan":
        total = math.ceil(duration_seconds / segment_duration) if duration_seconds > 0 else 0
        return cls(
            video=video,
            duration_seconds=duration_seconds,
            segment_duration=segment_duration,
            total_segments=total,
        )

class SegmentJob(BaseModel):
    video: VideoEntry
    output_dir: Path
    segment_index: int = 0
    total_segments: int
    segment_duration: int
    status: JobStatus = JobStatus.PENDING
    error_message: Optional[str] = None

    @model_validator(mode="after")
    def check_index(self):
        if not 0 <= self.segment_index < self.total_segments:
            raise ValueError(
                f"segment_index {self.segment_index} out of range for {self.total_segments} segments"
            )
        return self

    @property
    def part_number(self) -> int:
        return self.segment_index + 1

    @property
    def artifact_path(self) -> Path:
        return self.output_dir / f"{self.video.name}_part{self.part_number}.gif"

    @property
    def start_offset(self) -> int:
        return self.segment_index * self.segment_duration

    @property
    def display_name(self) -> str:
        return f"{self.video.name}_part{self.part_number}"

    @property
    def label(self) -> str:
        return f"{self.video.name}#{self.segment_index}"

    def successor(self) -> Optional["SegmentJob"]:
        """Next segment of the same video, or None when the chain is finished."""
        if self.segment_index + 1 >= self.total_segments:
            return None
        return SegmentJob(
            video=self.video,
            output_dir=self.output_dir,
            segment_index=self.segment_index + 1,
            total_segments=self.total_segments,
            segment_duration=self.segment_duration,
        )

class OutputSpec(BaseModel):
    """Frame geometry and rate of produced GIF artifacts."""
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    fps: int
