"""Schedulers that pace AI turns and dealer draws."""

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from typing import Callable

Step = Callable[[], None]


class Scheduler(ABC):
    """
    Runs engine steps after a pacing delay.

    Delays are a presentation device only; the engine behaves the same
    whether a step runs after one second or immediately.
    """

    @abstractmethod
    def call_later(self, delay: float, step: Step) -> None:
        """Run ``step`` after ``delay`` seconds."""
        ...

    @abstractmethod
    def cancel_all(self) -> None:
        """Drop every pending step."""
        ...

    @property
    @abstractmethod
    def pending(self) -> int:
        """Number of steps waiting to run."""
        ...


class SyncScheduler(Scheduler):
    """
    Runs steps immediately, ignoring delays.

    Steps scheduled while another step is running are queued and run when
    it returns, so the engine never re-enters itself.
    """

    def __init__(self) -> None:
        self._queue: deque[Step] = deque()
        self._running = False

    def call_later(self, delay: float, step: Step) -> None:
        """Queue the step and drain the queue unless already draining."""
        self._queue.append(step)
        if self._running:
            return
        self._running = True
        try:
            while self._queue:
                self._queue.popleft()()
        finally:
            self._running = False

    def cancel_all(self) -> None:
        """Drop queued steps."""
        self._queue.clear()

    @property
    def pending(self) -> int:
        """Number of steps waiting to run."""
        return len(self._queue)


@dataclass
class _Pending:
    due: float
    seq: int
    step: Step


class ManualScheduler(Scheduler):
    """
    Queues steps on a virtual timeline; tests advance it explicitly.
    """

    def __init__(self) -> None:
        self._pending: list[_Pending] = []
        self._seq = 0
        self.now = 0.0

    def call_later(self, delay: float, step: Step) -> None:
        """Queue the step at ``now + delay``."""
        self._seq += 1
        self._pending.append(_Pending(self.now + delay, self._seq, step))
        self._pending.sort(key=lambda p: (p.due, p.seq))

    def cancel_all(self) -> None:
        """Drop queued steps."""
        self._pending.clear()

    @property
    def pending(self) -> int:
        """Number of steps waiting to run."""
        return len(self._pending)

    @property
    def next_delay(self) -> float | None:
        """Virtual seconds until the next step is due."""
        if not self._pending:
            return None
        return self._pending[0].due - self.now

    def step(self) -> bool:
        """
        Run the next due step, advancing virtual time to it.

        Returns:
            False if nothing was pending
        """
        if not self._pending:
            return False
        pending = self._pending.pop(0)
        self.now = max(self.now, pending.due)
        pending.step()
        return True

    def run_all(self, limit: int = 10_000) -> int:
        """
        Run steps until the queue is empty.

        Returns:
            Number of steps run
        """
        count = 0
        while self._pending:
            if count >= limit:
                raise RuntimeError(f"Scheduler did not settle after {limit} steps")
            self.step()
            count += 1
        return count


class AsyncioScheduler(Scheduler):
    """Schedules steps on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._handles: set[asyncio.TimerHandle] = set()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, step: Step) -> None:
        """Schedule the step on the loop."""
        handle: asyncio.TimerHandle

        def run() -> None:
            self._handles.discard(handle)
            step()

        handle = self._get_loop().call_later(delay, run)
        self._handles.add(handle)

    def cancel_all(self) -> None:
        """Cancel every pending timer."""
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

    @property
    def pending(self) -> int:
        """Number of steps waiting to run."""
        return len(self._handles)
