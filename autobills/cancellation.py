import threading


class RunCancelled(Exception):
    """Raised at the next network checkpoint once a run has been cancelled"""

    pass


class CancellationToken:
    """Run-scoped cancellation signal shared by every step of a bills run"""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelled("Bills run was cancelled")
