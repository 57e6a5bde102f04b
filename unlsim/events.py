"""
Discrete event scheduler.

Drives the whole simulation from a single thread of control. Pending
callbacks live in a heap ordered by (time, insertion order), so events that
share a timestamp run first-in first-out and every run is reproducible.
"""

import heapq
from typing import Callable, Any
from dataclasses import dataclass, field

from .clock import SimClock
from .errors import SchedulerClosedError


@dataclass(order=True)
class Event:
    """
    A scheduled callback.

    Attributes:
        time: Virtual time (nanoseconds) at which the event fires
        seq: Insertion counter, breaks ties between equal times
        handler: Function to call when the event fires
        args: Positional arguments for handler
        kwargs: Keyword arguments for handler
        description: Human-readable description
    """
    time: int
    seq: int
    handler: Callable = field(compare=False)
    args: tuple = field(default_factory=tuple, compare=False)
    kwargs: dict = field(default_factory=dict, compare=False)
    description: str = field(default="", compare=False)

    def execute(self) -> Any:
        """Execute the event handler."""
        return self.handler(*self.args, **self.kwargs)


class Scheduler:
    """
    Virtual-time scheduler.

    Callbacks may schedule further callbacks while the scheduler is running;
    anything that falls inside the current run window executes in the same
    run. There is no cancellation: an event, once queued, runs when due.
    """

    def __init__(self):
        self._queue: list[Event] = []
        self._clock = SimClock()
        self._event_count: int = 0
        self._closed: bool = False

    def _check_open(self):
        if self._closed:
            raise SchedulerClosedError("Cannot use a scheduler after close()")

    def _push(self, time: int, handler: Callable, args: tuple, kwargs: dict, description: str) -> Event:
        event = Event(
            time=time,
            seq=self._event_count,
            handler=handler,
            args=args,
            kwargs=kwargs,
            description=description
        )
        heapq.heappush(self._queue, event)
        self._event_count += 1
        return event

    def schedule(
        self,
        delay: int,
        handler: Callable,
        *args,
        description: str = "",
        **kwargs
    ) -> Event:
        """
        Schedule an event to occur after a delay.

        Args:
            delay: Non-negative virtual duration from now
            handler: Function to call when event fires
            *args: Positional arguments for handler
            description: Human-readable description
            **kwargs: Keyword arguments for handler

        Returns:
            The created Event object

        Raises:
            ValueError: If delay is negative
            SchedulerClosedError: If the scheduler has been closed
        """
        self._check_open()
        if delay < 0:
            raise ValueError(f"Cannot schedule with negative delay {delay}")
        return self._push(self.now() + int(delay), handler, args, kwargs, description)

    def schedule_at(
        self,
        time: int,
        handler: Callable,
        *args,
        description: str = "",
        **kwargs
    ) -> Event:
        """
        Schedule an event at an absolute virtual time.

        A time already in the past is clamped to now(): the event runs
        immediately, after whatever is already due at now().

        Returns:
            The created Event object
        """
        self._check_open()
        return self._push(max(int(time), self.now()), handler, args, kwargs, description)

    def now(self) -> int:
        """Current virtual time in nanoseconds."""
        return self._clock.now()

    @property
    def current_time(self) -> int:
        """Current virtual time in nanoseconds."""
        return self._clock.now()

    def pop(self) -> Event | None:
        """
        Get and remove the next event.

        Returns:
            The next event or None if queue is empty
        """
        if not self._queue:
            return None
        return heapq.heappop(self._queue)

    def peek(self) -> Event | None:
        """
        Get the next event without removing it.

        Returns:
            The next event or None if queue is empty
        """
        if not self._queue:
            return None
        return self._queue[0]

    @property
    def size(self) -> int:
        """Number of pending events."""
        return len(self._queue)

    @property
    def total_events(self) -> int:
        """Total number of events created."""
        return self._event_count

    @property
    def closed(self) -> bool:
        return self._closed

    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return len(self._queue) == 0

    def step(self) -> bool:
        """
        Execute the single next event, advancing time to it.

        Returns:
            False if there was nothing to run
        """
        self._check_open()
        event = self.pop()
        if event is None:
            return False
        self._clock.advance_to(event.time)
        event.execute()
        return True

    def run_until(self, end_time: int, max_events: int | None = None) -> int:
        """
        Run every event due at or before `end_time`.

        Time is left at `end_time` unless `max_events` cut the run short,
        in which case it stays at the last executed event.

        Args:
            end_time: Absolute virtual time to run to
            max_events: Stop after processing this many events (optional)

        Returns:
            Number of events processed
        """
        self._check_open()
        events_processed = 0

        while not self.is_empty():
            event = self.peek()
            if event.time > end_time:
                break
            if max_events is not None and events_processed >= max_events:
                return events_processed

            event = self.pop()
            self._clock.advance_to(event.time)
            event.execute()
            events_processed += 1

            # A handler may have closed the scheduler
            if self._closed:
                return events_processed

        if end_time > self.now():
            self._clock.advance_to(end_time)

        return events_processed

    def run_for(self, duration: int, max_events: int | None = None) -> int:
        """
        Advance virtual time by `duration`, running every event due in the window.

        Returns:
            Number of events processed
        """
        if duration < 0:
            raise ValueError(f"Cannot run for negative duration {duration}")
        return self.run_until(self.now() + int(duration), max_events=max_events)

    def clear(self):
        """Clear all pending events."""
        self._queue.clear()

    def close(self):
        """
        Tear the scheduler down.

        Pending events are discarded and any further scheduling or running
        raises SchedulerClosedError.
        """
        self._queue.clear()
        self._closed = True
