import time
import logging
from typing import Any, Callable, Optional
from tenacity import Retrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_fixed
from gifrot.config.models import PublishConfig, PublishTarget
from gifrot.domain.errors import AccountClientError, RateLimitedError
from gifrot.domain.events import PublishRetrying, SegmentPublished
from gifrot.domain.models import PublishOutcome, SegmentJob
from gifrot.infrastructure.account_client import HttpAccountClient
from gifrot.infrastructure.event_bus import EventBus

class RateLimitRetryPolicy:
    """Constant-backoff retry around a single account call.

    Only RateLimitedError is retried while attempts remain. Any other error,
    or the last rate limit once attempts run out, is re-raised as is.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        backoff_delay: float = 60.0,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Optional[Callable[[int, float, BaseException], None]] = None,
    ):
        self.max_attempts = max_attempts
        self.backoff_delay = backoff_delay
        self.sleep = sleep
        self.on_retry = on_retry
        self.logger = logging.getLogger(__name__)

    def _before_sleep(self, retry_state: RetryCallState):
        error = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else self.backoff_delay
        self.logger.warning(
            f"PUBLISH_RETRY: rate limited on attempt {retry_state.attempt_number}/{self.max_attempts}, "
            f"waiting {delay:.0f}s"
        )
        if self.on_retry:
            self.on_retry(retry_state.attempt_number, delay, error)

    def call(self, func: Callable[..., Any], *args, **kwargs) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.backoff_delay),
            retry=retry_if_exception_type(RateLimitedError),
            sleep=self.sleep,
            before_sleep=self._before_sleep,
            reraise=True,
        )
        return retrying(func, *args, **kwargs)

class Publisher:
    """Applies one artifact to the account, then holds for one segment."""

    def __init__(
        self,
        account_client: HttpAccountClient,
        config: PublishConfig,
        event_bus: Optional[EventBus] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.account_client = account_client
        self.config = config
        self.event_bus = event_bus
        self.sleep = sleep
        self.logger = logging.getLogger(__name__)

    def _retry_policy(self, job: SegmentJob) -> RateLimitRetryPolicy:
        def on_retry(attempt: int, delay: float, error: BaseException):
            if self.event_bus:
                self.event_bus.publish(PublishRetrying(job=job, attempt=attempt, delay_seconds=delay))

        return RateLimitRetryPolicy(
            max_attempts=self.config.max_attempts,
            backoff_delay=self.config.backoff_delay_seconds,
            sleep=self.sleep,
            on_retry=on_retry,
        )

    def _set_image(self, data: bytes):
        if self.config.target == PublishTarget.BANNER:
            self.account_client.set_banner(data)
        else:
            self.account_client.set_avatar(data)

    def publish(self, job: SegmentJob) -> PublishOutcome:
        artifact = job.artifact_path
        target = self.config.target.value
        changed = False
        outcome = PublishOutcome.ABANDONED

        try:
            data = artifact.read_bytes()
        except OSError as e:
            self.logger.error(f"Cannot read artifact {artifact}: {e}")
            return PublishOutcome.ABANDONED

        self.logger.info(f"PUBLISH_START: {artifact.name} target={target} bytes={len(data)}")
        try:
            self._retry_policy(job).call(self._set_image, data)
        except RateLimitedError as e:
            self.logger.error(
                f"PUBLISH_FAILED: {artifact.name} still rate limited after {self.config.max_attempts} attempts: {e}"
            )
        except AccountClientError as e:
            self.logger.error(f"PUBLISH_FAILED: {artifact.name} {target} update rejected: {e}")
        else:
            changed = True
            outcome = PublishOutcome.SUCCESS
            self.logger.info(f"PUBLISH_END: {artifact.name} {target} updated")
            if self.event_bus:
                self.event_bus.publish(SegmentPublished(job=job))

        if self.config.update_display_name:
            try:
                self.account_client.set_display_name(job.display_name)
                changed = True
                self.logger.info(f"Display name updated to {job.display_name}")
            except AccountClientError as e:
                self.logger.error(f"Failed to update display name to {job.display_name}: {e}")

        if self.config.hold and changed:
            self.logger.info(f"Holding {job.segment_duration}s before the next segment")
            self.sleep(job.segment_duration)

        return outcome
