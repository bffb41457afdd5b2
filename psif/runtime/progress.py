"""Lightweight terminal progress reporting for grid sweeps."""

from __future__ import annotations

import math
import sys
import time

ETA_EWMA_ALPHA = 0.1
ETA_MIN_SAMPLES = 3


class ProgressReporter:
    """Terminal progress bar over completed q-rows with ETA feedback."""

    def __init__(
        self,
        total_rows: int,
        *,
        enabled: bool = False,
        points_per_row: int = 1,
    ) -> None:
        self.enabled = bool(enabled and total_rows > 0)
        self.total_rows = max(int(total_rows), 1)
        self.points_per_row = max(int(points_per_row), 1)
        self.start = time.monotonic()
        self._finished = False
        self._isatty = sys.stdout.isatty()
        self._last_percent_int: int = -1
        self._eta_ewma_s: float | None = None
        self._eta_samples: int = 0
        self._last_row_wall: float | None = None
        self._last_done: int | None = None

    def update(self, rows_done: int, q_value: float, *, force: bool = False) -> None:
        """Render the bar when the percentage changes by 0.1% or when forced."""

        if not self.enabled or self._finished:
            return
        now = time.monotonic()
        self._update_eta(rows_done, now)
        is_last = rows_done >= self.total_rows
        frac = min(max(rows_done / self.total_rows, 0.0), 1.0)
        percent_tenth = int(frac * 1000)
        if not force and not is_last and percent_tenth == self._last_percent_int:
            return
        self._last_percent_int = percent_tenth
        bar_width = 28
        filled = int(bar_width * frac)
        bar = "#" * filled + "-" * (bar_width - filled)
        remaining_rows = max(self.total_rows - rows_done, 0)
        eta_seconds = float("nan")
        if (
            self._eta_ewma_s is not None
            and math.isfinite(self._eta_ewma_s)
            and self._eta_samples >= ETA_MIN_SAMPLES
        ):
            eta_seconds = self._eta_ewma_s * remaining_rows

        def _format_eta(seconds: float) -> str:
            if not math.isfinite(seconds) or seconds < 0.0:
                return "ETA ?"
            if seconds >= 3600.0:
                return f"ETA {seconds/3600.0:.1f}h"
            if seconds >= 60.0:
                return f"ETA {seconds/60.0:.1f}m"
            return f"ETA {seconds:.0f}s"

        q_text = f"q={q_value:+.3f}" if math.isfinite(q_value) else "q=?"
        line = (
            f"[{bar}] {frac * 100:5.1f}% row {rows_done}/{self.total_rows} "
            f"({rows_done * self.points_per_row} pts) {q_text} {_format_eta(eta_seconds)}"
        )
        if self._isatty:
            sys.stdout.write(f"\r\033[2K{line}")
            if is_last:
                sys.stdout.write("\n")
        else:
            sys.stdout.write(f"{line}\n")
        if is_last:
            self._finished = True
        sys.stdout.flush()

    def finish(self, rows_done: int, q_value: float) -> None:
        """Force a final render to end the line cleanly."""

        if not self.enabled:
            return
        self.update(rows_done, q_value, force=True)

    def _update_eta(self, rows_done: int, now: float) -> None:
        """Update the per-row wall time EWMA."""

        if self._last_row_wall is not None and self._last_done is not None:
            delta = rows_done - self._last_done
            if delta > 0:
                row_seconds = (now - self._last_row_wall) / delta
                if math.isfinite(row_seconds) and row_seconds > 0.0:
                    if self._eta_ewma_s is None:
                        self._eta_ewma_s = row_seconds
                    else:
                        self._eta_ewma_s = (
                            ETA_EWMA_ALPHA * row_seconds + (1.0 - ETA_EWMA_ALPHA) * self._eta_ewma_s
                        )
                    self._eta_samples += 1
        self._last_row_wall = now
        self._last_done = rows_done
