"""
Progress reporting for long log scans.

The scanner advances a ScanCursor as it reads; a ProgressMonitor thread
samples the cursor on a fixed period and rewrites a single status line on
stderr. The monitor only reads the cursor, and a stale sample just means a
slightly old progress line.
"""

import sys
import threading
import time
from dataclasses import dataclass
from typing import Optional, TextIO


@dataclass
class ScanCursor:
    """
    Read position of the scanner.

    Written only by the scanning thread. Integer attribute updates are atomic
    under the interpreter lock, so readers need no locking.
    """

    lines: int = 0
    offset: int = 0

    def advance(self, nbytes: int) -> None:
        """Record one more line of ``nbytes`` raw bytes."""
        self.lines += 1
        self.offset += nbytes


def format_elapsed(seconds: float) -> str:
    """Render whole elapsed seconds as e.g. ``5s``, ``2m03s`` or ``1h02m03s``."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"


def format_progress(
    lines: int,
    offset: int,
    total_size: Optional[int],
    elapsed: float,
) -> str:
    """Build one progress line (without the leading carriage return)."""
    elapsed_str = format_elapsed(elapsed)
    if total_size:
        pct = offset / total_size * 100
        return (
            f"Progress: {pct:6.2f}%  {offset}/{total_size} bytes  "
            f"{lines} lines  elapsed {elapsed_str}      "
        )
    return f"Progress: {offset} bytes  {lines} lines  elapsed {elapsed_str}      "


class ProgressMonitor:
    """
    Periodic progress reporter running on a daemon thread.

    Use as a context manager around the scan; leaving the block stops the
    thread and terminates the progress line, including when the scan raises.
    """

    MIN_INTERVAL = 0.25

    def __init__(
        self,
        cursor: ScanCursor,
        total_size: Optional[int] = None,
        interval: float = MIN_INTERVAL,
        stream: Optional[TextIO] = None,
        enabled: bool = True,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            cursor: Cursor advanced by the scanner
            total_size: Size of the source in bytes, if known
            interval: Seconds between samples (at least MIN_INTERVAL)
            stream: Output stream (defaults to sys.stderr)
            enabled: When False, start/stop do nothing
        """
        self._cursor = cursor
        self._total_size = total_size
        self._interval = max(interval, self.MIN_INTERVAL)
        self._stream = stream or sys.stderr
        self._enabled = enabled
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._started_at = 0.0
        self._updates = 0

    @property
    def running(self) -> bool:
        """Check if the sampling thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def updates(self) -> int:
        """Number of progress lines written so far."""
        return self._updates

    def start(self) -> None:
        """Start sampling. Calling start on a running monitor is a no-op."""
        if not self._enabled or self.running:
            return
        self._started_at = time.monotonic()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="progress-monitor",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop sampling and leave the stream on a fresh line."""
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None
        self._stream.write("\n")
        self._stream.flush()

    def sample(self) -> str:
        """Render the current progress line."""
        return format_progress(
            lines=self._cursor.lines,
            offset=self._cursor.offset,
            total_size=self._total_size,
            elapsed=time.monotonic() - self._started_at,
        )

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self._stream.write("\r" + self.sample())
            self._stream.flush()
            self._updates += 1

    def __enter__(self) -> "ProgressMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
