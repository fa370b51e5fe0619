from typing import Optional
from rich.console import Console
from rich.table import Table
from gifrot.infrastructure.event_bus import EventBus
from gifrot.domain.events import (
    DiscoveryFinished, VideoSkipped, SegmentPublished,
    PublishRetrying, JobAbandoned, JobCompleted, ProcessingFinished
)

class ConsoleReporter:
    """Subscribes to EventBus, tallies outcomes and prints a run summary."""

    def __init__(self, bus: EventBus, console: Optional[Console] = None):
        self.bus = bus
        self.console = console or Console(stderr=True)
        self.videos_found = 0
        self.videos_queued = 0
        self.videos_skipped = 0
        self.segments_done = 0
        self.segments_published = 0
        self.segments_abandoned = 0
        self.rate_limit_waits = 0
        self.finished = False
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(DiscoveryFinished, self.on_discovery_finished)
        self.bus.subscribe(VideoSkipped, self.on_video_skipped)
        self.bus.subscribe(SegmentPublished, self.on_segment_published)
        self.bus.subscribe(PublishRetrying, self.on_publish_retrying)
        self.bus.subscribe(JobAbandoned, self.on_job_abandoned)
        self.bus.subscribe(JobCompleted, self.on_job_completed)
        self.bus.subscribe(ProcessingFinished, self.on_processing_finished)

    def on_discovery_finished(self, event: DiscoveryFinished):
        self.videos_found = event.videos_found
        self.videos_queued = event.videos_queued

    def on_video_skipped(self, event: VideoSkipped):
        self.videos_skipped += 1

    def on_segment_published(self, event: SegmentPublished):
        self.segments_published += 1

    def on_publish_retrying(self, event: PublishRetrying):
        self.rate_limit_waits += 1

    def on_job_abandoned(self, event: JobAbandoned):
        self.segments_abandoned += 1

    def on_job_completed(self, event: JobCompleted):
        self.segments_done += 1

    def on_processing_finished(self, event: ProcessingFinished):
        self.finished = True
        self.console.print(self.render_summary())

    def render_summary(self) -> Table:
        table = Table(title="gifrot run summary", show_header=False)
        table.add_column("metric")
        table.add_column("value", justify="right")
        table.add_row("Videos found", str(self.videos_found))
        table.add_row("Videos queued", str(self.videos_queued))
        table.add_row("Videos skipped", str(self.videos_skipped))
        table.add_row("Segments processed", str(self.segments_done))
        table.add_row("Segments published", str(self.segments_published))
        table.add_row("Segments abandoned", str(self.segments_abandoned))
        table.add_row("Rate-limit waits", str(self.rate_limit_waits))
        return table
