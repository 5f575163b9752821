"""
Client state store shared by the workflows and the presentation layer
"""
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from gateway import LocalModel

logger = logging.getLogger(__name__)

INFO = 'info'
SUCCESS = 'success'
ERROR = 'error'


@dataclass(frozen=True)
class StatusMessage:
    kind: str = ''
    text: str = ''

    @classmethod
    def info(cls, text: str) -> 'StatusMessage':
        return cls(INFO, text)

    @classmethod
    def success(cls, text: str) -> 'StatusMessage':
        return cls(SUCCESS, text)

    @classmethod
    def error(cls, text: str) -> 'StatusMessage':
        return cls(ERROR, text)

    def __bool__(self):
        return bool(self.text)


EMPTY_STATUS = StatusMessage()


class ClientState:
    """
    Single owner of the client's mutable state.

    Fields are only changed through update(), which assigns them and then
    calls every subscriber with the state. Each update bumps `version` so
    readers can tell a snapshot is stale.
    """

    FIELDS = ('models', 'pending_name', 'status', 'busy', 'pulling_target')

    def __init__(self):
        self.models: Tuple[LocalModel, ...] = ()
        self.pending_name = ''
        self.status = EMPTY_STATUS
        self.busy = False
        self.pulling_target = ''
        self.version = 0
        self._subscribers: List[Callable[['ClientState'], None]] = []
        self._lock = threading.RLock()

    def subscribe(self, callback: Callable[['ClientState'], None]) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it"""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def update(self, **changes):
        unknown = set(changes) - set(self.FIELDS)
        if unknown:
            raise AttributeError(f"Unknown state fields: {', '.join(sorted(unknown))}")
        if 'models' in changes:
            changes['models'] = tuple(changes['models'])

        with self._lock:
            for name, value in changes.items():
                setattr(self, name, value)
            self.version += 1
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(self)
            except Exception as e:
                logger.error(f"State subscriber {callback!r} failed: {e}")

    def acquire_busy(self) -> bool:
        """Set busy unless it already is; False means someone else holds it"""
        with self._lock:
            if self.busy:
                return False
            self.update(busy=True)
            return True

    def snapshot(self) -> Dict:
        """JSON-ready copy of the current state"""
        with self._lock:
            return {
                'models': [model.to_dict() for model in self.models],
                'pending_name': self.pending_name,
                'status': {'kind': self.status.kind, 'text': self.status.text} if self.status else None,
                'busy': self.busy,
                'pulling_target': self.pulling_target,
                'version': self.version,
            }
