import time
import logging
from typing import Callable, Optional
from gifrot.domain.errors import EncodeError
from gifrot.domain.events import JobAbandoned, JobCompleted, JobStarted, SegmentEncoded
from gifrot.domain.models import JobStatus, OutputSpec, PublishOutcome, SegmentJob
from gifrot.infrastructure.event_bus import EventBus
from gifrot.infrastructure.ffmpeg import FFmpegAdapter
from gifrot.pipeline.publisher import Publisher
from gifrot.pipeline.scheduler import SegmentScheduler

class SegmentJobRunner:
    """Runs one SegmentJob: encode if missing, publish, queue the successor.

    `run()` owns the gate for the whole lifecycle and always releases it,
    whatever happened to the job.
    """

    def __init__(
        self,
        scheduler: SegmentScheduler,
        ffmpeg_adapter: FFmpegAdapter,
        publisher: Publisher,
        output_spec: OutputSpec,
        event_bus: Optional[EventBus] = None,
        post_job_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.scheduler = scheduler
        self.ffmpeg_adapter = ffmpeg_adapter
        self.publisher = publisher
        self.output_spec = output_spec
        self.event_bus = event_bus
        self.post_job_delay = post_job_delay
        self.sleep = sleep
        self.logger = logging.getLogger(__name__)

    def _emit(self, event):
        if self.event_bus:
            self.event_bus.publish(event)

    def _abandon(self, job: SegmentJob, message: str):
        job.status = JobStatus.ABANDONED
        job.error_message = message
        self.logger.error(f"JOB_ABANDONED: {job.label} {message}")
        self._emit(JobAbandoned(job=job, error_message=message))

    def _execute(self, job: SegmentJob):
        job.output_dir.mkdir(parents=True, exist_ok=True)
        artifact = job.artifact_path

        if artifact.exists():
            self.logger.info(f"ENCODE_SKIP: {artifact.name} already exists")
            job.status = JobStatus.COMPLETED
            return

        try:
            self.ffmpeg_adapter.encode(
                job.video.path,
                job.start_offset,
                job.segment_duration,
                artifact,
                self.output_spec,
            )
        except EncodeError as e:
            # Not retried; the chain moves on to the next segment
            self._abandon(job, f"encode failed: {e}")
            return

        self._emit(SegmentEncoded(job=job))
        if self.publisher.publish(job) == PublishOutcome.SUCCESS:
            job.status = JobStatus.COMPLETED
        else:
            self._abandon(job, "publish failed")

    def run(self, job: SegmentJob):
        job.status = JobStatus.RUNNING
        self.logger.info(
            f"JOB_START: {job.video.path.name} segment {job.part_number} of {job.total_segments}"
        )
        try:
            try:
                self._emit(JobStarted(job=job))
                self._execute(job)
            except Exception as e:
                self._abandon(job, f"unexpected error: {e}")

            successor = job.successor()
            if successor is not None:
                self.scheduler.enqueue_front(successor)
                self.logger.info(f"Queued next segment for {job.video.name} ({successor.part_number}/{job.total_segments})")
            else:
                self.logger.info(f"Finished all {job.total_segments} segments for {job.video.name}")
            self._emit(JobCompleted(job=job, has_successor=successor is not None))
        except Exception:
            self.logger.exception(f"JOB_ERROR: {job.label} failed outside its lifecycle steps")
        finally:
            self.sleep(self.post_job_delay)
            self.scheduler.release()
