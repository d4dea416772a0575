"""Process-local request admission state.

Windows live in memory only. The map is bounded: expired windows are swept
first and the least recently seen client is evicted when the bound is hit.
"""
from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable


@dataclass
class ClientWindow:
    count: int
    reset_at: float


@dataclass(frozen=True)
class Admission:
    allowed: bool
    remaining: int
    reset_at: float


class AdmissionLimiter:
    """Fixed-window request counter keyed by client identity."""

    def __init__(
        self,
        *,
        max_requests: int = 5,
        window_s: float = 60.0,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_s <= 0:
            raise ValueError("window_s must be positive")
        if max_clients < 1:
            raise ValueError("max_clients must be at least 1")
        self.max_requests = max_requests
        self.window_s = window_s
        self.max_clients = max_clients
        self._clock = clock
        self._windows: OrderedDict[str, ClientWindow] = OrderedDict()
        self._lock = threading.Lock()

    def admit(self, client_id: str) -> Admission:
        with self._lock:
            now = self._clock()
            window = self._windows.get(client_id)
            if window is None:
                self._make_room(now)
                window = ClientWindow(count=0, reset_at=now + self.window_s)
                self._windows[client_id] = window
            else:
                self._windows.move_to_end(client_id)
                if now >= window.reset_at:
                    window.count = 0
                    window.reset_at = now + self.window_s

            allowed = window.count < self.max_requests
            if allowed:
                window.count += 1

            return Admission(
                allowed=allowed,
                remaining=max(0, self.max_requests - window.count),
                reset_at=window.reset_at,
            )

    def sweep(self, now: float | None = None) -> int:
        """Drop expired windows and return how many were removed."""

        with self._lock:
            return self._sweep(self._clock() if now is None else now)

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def _make_room(self, now: float) -> None:
        if len(self._windows) < self.max_clients:
            return
        self._sweep(now)
        while len(self._windows) >= self.max_clients:
            self._windows.popitem(last=False)


_limiter: AdmissionLimiter = AdmissionLimiter()


def configure_admission_limiter(limiter: AdmissionLimiter) -> None:
    """Install the limiter guarding the analysis endpoint."""

    global _limiter
    _limiter = limiter


def get_admission_limiter() -> AdmissionLimiter:
    return _limiter
