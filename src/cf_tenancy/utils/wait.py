"""Bounded, cancellable waits on cluster state.

Two primitives back the provisioning protocol:

- :func:`watch_until` folds a server-streamed watch until a decoded snapshot
  satisfies a predicate, reopening the stream if the server closes it early.
- :func:`poll_until` re-evaluates a check at a fixed interval, for state that
  exposes no completion event (RBAC propagation).

Both take an absolute timeout in seconds and an optional ``threading.Event``
that aborts the wait with :class:`OperationCancelledError` when set.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import closing
from typing import Any, TypeVar

from cf_tenancy.utils.errors import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WaitTimeout(Exception):
    """A bounded wait ran out of time."""

    def __init__(self, elapsed: float) -> None:
        super().__init__(f"timed out after {elapsed:.3f}s")
        self.elapsed = elapsed


def _check_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError("wait cancelled by caller")


def _sleep(seconds: float, cancel: threading.Event | None) -> None:
    if seconds <= 0:
        return
    if cancel is None:
        time.sleep(seconds)
        return
    if cancel.wait(seconds):
        raise OperationCancelledError("wait cancelled by caller")


def watch_until(
    open_stream: Callable[[float], Iterator[Any]],
    decode: Callable[[Any], T | None],
    predicate: Callable[[T], bool],
    timeout: float,
    cancel: threading.Event | None = None,
    reopen_delay: float = 0.5,
    window: float = 0.25,
) -> T:
    """Consume watch events until a decoded snapshot satisfies ``predicate``.

    The watch is opened in windows of at most ``window`` seconds, so a quiet
    stream never holds off ``cancel`` or the deadline for longer than that.

    Args:
        open_stream: Opens a watch stream that ends by itself after the given
            number of seconds. The returned iterator is closed once the wait ends.
        decode: Turns an event into a snapshot, or None to skip the event.
        predicate: Returns True for the snapshot that ends the wait.
        timeout: Deadline in seconds from the start of the call.
        cancel: Optional event that aborts the wait when set.
        reopen_delay: Pause before reopening a stream the server closed
            before its window ran out.
        window: Longest time a single stream stays open.

    Returns:
        The first snapshot satisfying the predicate.

    Raises:
        WaitTimeout: If the deadline elapses first.
        OperationCancelledError: If ``cancel`` is set.
    """
    start = time.monotonic()
    deadline = start + timeout

    while True:
        _check_cancelled(cancel)
        opened = time.monotonic()
        remaining = deadline - opened
        if remaining <= 0:
            raise WaitTimeout(opened - start)

        stream_window = min(remaining, window)
        with closing(open_stream(stream_window)) as stream:
            for event in stream:
                _check_cancelled(cancel)
                snapshot = decode(event)
                if snapshot is not None and predicate(snapshot):
                    return snapshot
                if time.monotonic() >= deadline:
                    raise WaitTimeout(time.monotonic() - start)

        if time.monotonic() - opened < stream_window:
            logger.debug("Watch stream closed early, reopening")
            _sleep(min(reopen_delay, deadline - time.monotonic()), cancel)


def poll_until(
    check: Callable[[], bool],
    interval: float,
    timeout: float,
    cancel: threading.Event | None = None,
) -> float:
    """Call ``check`` every ``interval`` seconds until it returns True.

    Exceptions raised by ``check`` propagate immediately.

    Returns:
        Seconds elapsed until the check succeeded.

    Raises:
        WaitTimeout: If the deadline elapses first.
        OperationCancelledError: If ``cancel`` is set.
    """
    start = time.monotonic()
    deadline = start + timeout

    while True:
        _check_cancelled(cancel)
        if check():
            return time.monotonic() - start

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise WaitTimeout(time.monotonic() - start)
        _sleep(min(interval, remaining), cancel)
