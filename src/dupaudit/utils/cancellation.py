import threading


class ScanCancelled(Exception):
    """Raised when a scan stops because its Cancellation was triggered."""


class Cancellation:
    """Cooperative cancellation flag shared between a scan and its controller.

    The scan checks the flag between files; cancel() may be called from a
    signal handler or another thread.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self):
        if self._event.is_set():
            raise ScanCancelled("scan cancelled")
