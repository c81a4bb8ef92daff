"""Global notification throttle."""

import threading
import time
from collections.abc import Callable


class ThrottleWindow:
    """Caps notifications to `limit` per window, shared by every watched file.

    The window restarts on the first attempt made at least `window` seconds
    after the current one began. Attempts beyond the limit are refused until
    then.
    """

    def __init__(
        self,
        limit: int,
        window: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self.window_start: float = clock()
        self.count_in_window: int = 0

    def try_acquire(self) -> bool:
        """Claim a slot in the current window.

        Returns:
            True if the caller may dispatch, False if throttled
        """
        with self._lock:
            now = self._clock()
            if now - self.window_start >= self.window:
                self.count_in_window = 0
                self.window_start = now

            if self.count_in_window < self.limit:
                self.count_in_window += 1
                return True

            return False

    def time_until_slot(self) -> float | None:
        """Get seconds remaining until the next slot frees up.

        Returns:
            Seconds remaining, or None if a slot is available now
        """
        with self._lock:
            elapsed = self._clock() - self.window_start
            if elapsed >= self.window or self.count_in_window < self.limit:
                return None
            return self.window - elapsed
