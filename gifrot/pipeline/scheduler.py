"""Single-flight queue of segment jobs.

The scheduler owns the pending jobs and the in-flight gate. Every mutation
happens under one Condition, so the drain loop and the job worker can share it
without busy polling: the worker releases the gate and notifies, the drain loop
wakes and takes the next job.
"""

import threading
from collections import deque
from enum import Enum
from typing import Deque, List, Optional
from gifrot.domain.models import SegmentJob


class SchedulerState(str, Enum):
    IDLE = "IDLE"
    DRAINING = "DRAINING"


class SegmentScheduler:
    """Ordered job queue with an at-most-one-in-flight gate.

    First segments go to the back (scan order across videos); a finished job's
    successor goes to the front so one video's segments run back-to-back.
    """

    def __init__(self):
        self._pending: Deque[SegmentJob] = deque()
        self._in_flight = False
        self._condition = threading.Condition()

    def enqueue_back(self, job: SegmentJob):
        with self._condition:
            self._pending.append(job)
            self._condition.notify_all()

    def enqueue_front(self, job: SegmentJob):
        with self._condition:
            self._pending.appendleft(job)
            self._condition.notify_all()

    def dequeue(self) -> Optional[SegmentJob]:
        with self._condition:
            if not self._pending:
                return None
            return self._pending.popleft()

    def is_empty(self) -> bool:
        with self._condition:
            return not self._pending

    def try_acquire(self) -> bool:
        """Takes the gate; False if a job is already running."""
        with self._condition:
            if self._in_flight:
                return False
            self._in_flight = True
            return True

    def release(self):
        with self._condition:
            if not self._in_flight:
                raise RuntimeError("release() called while no job is in flight")
            self._in_flight = False
            self._condition.notify_all()

    def acquire_next(self) -> Optional[SegmentJob]:
        """Takes the gate and the head job together.

        Returns None, leaving the gate untouched, when a job is running or
        nothing is queued.
        """
        with self._condition:
            if self._in_flight or not self._pending:
                return None
            self._in_flight = True
            return self._pending.popleft()

    def wait_for_gate(self, timeout: Optional[float] = None) -> bool:
        """Blocks until the gate is free. Returns False on timeout."""
        with self._condition:
            return self._condition.wait_for(lambda: not self._in_flight, timeout=timeout)

    @property
    def in_flight(self) -> bool:
        with self._condition:
            return self._in_flight

    def is_idle(self) -> bool:
        with self._condition:
            return not self._in_flight and not self._pending

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.IDLE if self.is_idle() else SchedulerState.DRAINING

    def pending(self) -> List[SegmentJob]:
        with self._condition:
            return list(self._pending)

    def __len__(self) -> int:
        with self._condition:
            return len(self._pending)
