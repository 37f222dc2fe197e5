"""
Structured warning events.

Classification code reports non-fatal problems (such as an unknown key code)
as ClassificationWarning events. The host application decides whether to
surface them; the package itself only logs.
"""
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional


@dataclass(frozen=True)
class ClassificationWarning:
    """A non-fatal problem found while classifying column metadata."""
    code: str
    message: str
    column: Optional[str] = None


WarningSink = Callable[[ClassificationWarning], None]


class CollectingWarningSink:
    """
    Warning sink that keeps every event it receives.

    Example:
        >>> sink = CollectingWarningSink()
        >>> sink(ClassificationWarning(code="unrecognized_key_code", message="FOO"))
        >>> sink.events[0].code
        'unrecognized_key_code'
    """

    def __init__(self):
        self._events: List[ClassificationWarning] = []
        self._lock = threading.Lock()

    def __call__(self, event: ClassificationWarning) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[ClassificationWarning]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
