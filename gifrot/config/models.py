from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

class PublishTarget(str, Enum):
    AVATAR = "avatar"
    BANNER = "banner"

class ResumeMode(str, Enum):
    COARSE = "coarse"  # any artifact present means the video is done
    STRICT = "strict"  # every planned part must be present

class GeneralConfig(BaseModel):
    videos_dir: str = "./video"
    output_dir: str = "./gifs"
    extensions: List[str] = Field(default_factory=lambda: [".mp4", ".mkv"])
    log_path: Optional[str] = None
    debug: bool = False

    @field_validator("extensions")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalized.append(ext if ext.startswith(".") else f".{ext}")
        if not normalized:
            raise ValueError("extensions must contain at least one entry")
        return normalized

class SegmentConfig(BaseModel):
    duration: int = Field(default=220, gt=0)
    width: int = Field(default=60, gt=0)
    height: int = Field(default=60, gt=0)
    fps: int = Field(default=5, gt=0)
    banner_quality_multiplier: int = Field(default=4, ge=1)

class PublishConfig(BaseModel):
    target: PublishTarget = PublishTarget.AVATAR
    update_display_name: bool = True
    max_attempts: int = Field(default=3, ge=1)
    backoff_delay_seconds: float = Field(default=60.0, ge=0.0)
    hold: bool = True
    post_job_delay_seconds: float = Field(default=1.0, ge=0.0)
    rate_limit_markers: List[str] = Field(
        default_factory=lambda: ["You are changing your avatar too fast"]
    )

class ResumeConfig(BaseModel):
    mode: ResumeMode = ResumeMode.COARSE

class EncoderConfig(BaseModel):
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

class AccountConfig(BaseModel):
    api_base: str = "https://discord.com/api/v9"
    token_env: str = "ACCOUNT_TOKEN"
    timeout_seconds: float = Field(default=30.0, gt=0)

class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    segment: SegmentConfig = Field(default_factory=SegmentConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    resume: ResumeConfig = Field(default_factory=ResumeConfig)
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)
    account: AccountConfig = Field(default_factory=AccountConfig)
