"""Pipeline orchestrator for the segment job lifecycle.

Coordinates discovery, planning and the drain loop. Uses the EventBus for
loose coupling between pipeline and console layers.

Key responsibilities:
- Remove stale temp files left by interrupted encodes
- Discover videos and plan the first segment of each
- Queue first segments in scan order
- Drain the queue one job at a time on a dedicated worker thread
- Emit events for console updates (DiscoveryFinished, QueueUpdated, etc.)
"""

import time
import logging
import threading
import concurrent.futures
from pathlib import Path
from typing import Callable, List, Optional
from gifrot.config.models import AppConfig
from gifrot.domain.events import DiscoveryFinished, ProcessingFinished, QueueUpdated, VideoSkipped
from gifrot.domain.models import SegmentJob
from gifrot.infrastructure.account_client import HttpAccountClient
from gifrot.infrastructure.event_bus import EventBus
from gifrot.infrastructure.ffmpeg import FFmpegAdapter, build_output_spec
from gifrot.infrastructure.ffprobe import FFprobeAdapter
from gifrot.infrastructure.file_scanner import FileScanner
from gifrot.infrastructure.housekeeping import HousekeepingService
from gifrot.pipeline.completion import CompletionOracle
from gifrot.pipeline.planner import SegmentPlanner, SkipReason
from gifrot.pipeline.publisher import Publisher
from gifrot.pipeline.runner import SegmentJobRunner
from gifrot.pipeline.scheduler import SegmentScheduler


class Orchestrator:
    """Segment pipeline orchestrator.

    Manages discovery -> planning -> drain. The drain loop runs on the calling
    thread and hands each job to a single-worker pool; the scheduler's gate
    guarantees at most one job in flight, and its Condition wakes the loop when
    the worker releases the gate.

    Args:
        config: AppConfig with general, segment, publish and resume settings.
        event_bus: EventBus for publishing lifecycle events.
        file_scanner: FileScanner for discovering video files.
        ffprobe_adapter: FFprobeAdapter for duration probing.
        ffmpeg_adapter: FFmpegAdapter for GIF encoding.
        account_client: HttpAccountClient the artifacts are published to.
        sleep: Sleep function used for holds, backoff and the post-job delay.
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        file_scanner: FileScanner,
        ffprobe_adapter: FFprobeAdapter,
        ffmpeg_adapter: FFmpegAdapter,
        account_client: HttpAccountClient,
        housekeeper: Optional[HousekeepingService] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.event_bus = event_bus
        self.file_scanner = file_scanner
        self.ffprobe_adapter = ffprobe_adapter
        self.ffmpeg_adapter = ffmpeg_adapter
        self.account_client = account_client
        self.housekeeper = housekeeper or HousekeepingService()
        self.logger = logging.getLogger(__name__)

        self.videos_dir = Path(config.general.videos_dir)
        self.output_root = Path(config.general.output_dir)

        self.scheduler = SegmentScheduler()
        self.planner = SegmentPlanner(
            ffprobe_adapter=ffprobe_adapter,
            oracle=CompletionOracle(),
            output_root=self.output_root,
            segment_duration=config.segment.duration,
            resume_mode=config.resume.mode,
        )
        self.publisher = Publisher(
            account_client=account_client,
            config=config.publish,
            event_bus=event_bus,
            sleep=sleep,
        )
        self.runner = SegmentJobRunner(
            scheduler=self.scheduler,
            ffmpeg_adapter=ffmpeg_adapter,
            publisher=self.publisher,
            output_spec=build_output_spec(config.segment, config.publish.target),
            event_bus=event_bus,
            post_job_delay=config.publish.post_job_delay_seconds,
            sleep=sleep,
        )

        self._shutdown_event = threading.Event()
        self.jobs_run = 0

    def request_shutdown(self):
        """Stops the drain loop after the running job; queued jobs are dropped."""
        self.logger.info("Shutdown requested - no further jobs will start")
        self._shutdown_event.set()

    def _publish_queue(self):
        self.event_bus.publish(QueueUpdated(pending_jobs=[job.label for job in self.scheduler.pending()]))

    def _perform_discovery(self) -> List[SegmentJob]:
        """Scans, plans and queues the first segment of every video."""
        self.housekeeper.cleanup_temp_files(self.output_root)

        self.logger.info(f"DISCOVERY_START: scanning {self.videos_dir}")
        videos = list(self.file_scanner.scan(self.videos_dir))

        queued: List[SegmentJob] = []
        already_complete = 0
        probe_failed = 0
        for video in videos:
            result = self.planner.plan(video)
            if result.job is None:
                if result.skip_reason == SkipReason.ALREADY_COMPLETE:
                    already_complete += 1
                elif result.skip_reason == SkipReason.PROBE_FAILED:
                    probe_failed += 1
                self.event_bus.publish(VideoSkipped(
                    video=video,
                    reason=result.skip_reason.value if result.skip_reason else "unknown",
                ))
                continue
            self.scheduler.enqueue_back(result.job)
            queued.append(result.job)

        self.logger.info(
            f"Discovery finished: found={len(videos)}, queued={len(queued)}, "
            f"already_complete={already_complete}, probe_failed={probe_failed}"
        )
        self.event_bus.publish(DiscoveryFinished(
            videos_dir=self.videos_dir,
            videos_found=len(videos),
            videos_queued=len(queued),
            already_complete=already_complete,
            probe_failed=probe_failed,
        ))
        return queued

    def _drain(self):
        """Starts one job whenever the gate is free until nothing is left."""
        with concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="segment-worker") as executor:
            current: Optional[concurrent.futures.Future] = None
            try:
                while not self._shutdown_event.is_set():
                    job = self.scheduler.acquire_next()
                    if job is not None:
                        self.jobs_run += 1
                        self._publish_queue()
                        current = executor.submit(self.runner.run, job)
                        continue
                    if self.scheduler.is_idle():
                        break
                    # Timeout keeps Ctrl+C responsive on the main thread
                    self.scheduler.wait_for_gate(timeout=1.0)

                if current is not None:
                    try:
                        current.result()
                    except Exception as e:
                        self.logger.error(f"Job worker failed with exception: {e}")

            except KeyboardInterrupt:
                self.logger.info("Ctrl+C detected - not starting further jobs")
                self._shutdown_event.set()
                executor.shutdown(wait=False, cancel_futures=True)
                raise

    def run(self) -> int:
        """Runs discovery and drains the queue. Returns the number of jobs run."""
        queued = self._perform_discovery()
        if not queued:
            self.logger.info("No videos to process, exiting")
            self.event_bus.publish(ProcessingFinished(jobs_run=0))
            return 0

        self._publish_queue()
        self._drain()

        if self._shutdown_event.is_set():
            self.logger.info(f"Stopped after {self.jobs_run} jobs, {len(self.scheduler)} left in queue")
        else:
            self.logger.info(f"Queue is empty, all {self.jobs_run} jobs processed")
        self.event_bus.publish(ProcessingFinished(jobs_run=self.jobs_run))
        return self.jobs_run
