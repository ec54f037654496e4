import logging
import threading
import time
from typing import Callable, Dict, Optional

from dropfour.models import MAX_PLAYERS

from .registry import RoomRegistry

logger = logging.getLogger(__name__)


class GracePeriodManager:
    """Deferred deletion of abandoned rooms, one timer per room code.

    - ``schedule`` always supersedes a previous timer for the same room
    - Firing and cancelling happen under the room lock and compare a per-arm
      token, so a timer either deletes its room or is cancelled, never both
    - A room that has regained a full table by the time the timer wakes is
      left alone
    """

    def __init__(
        self,
        registry: RoomRegistry,
        start_task: Optional[Callable] = None,
        sleep: Optional[Callable[[float], None]] = None,
        on_expire: Optional[Callable[[str, list], None]] = None,
    ):
        self._registry = registry
        self._start_task = start_task or _start_thread
        self._sleep = sleep or time.sleep
        # Called with (room_id, remaining members) just before deletion
        self.on_expire = on_expire
        self._timers: Dict[str, object] = {}
        self._lock = threading.Lock()

    def pending(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._timers

    def schedule(self, room_id: str, duration: float) -> None:
        token = object()
        with self._lock:
            self._timers[room_id] = token
        logger.info(f"[timer-set] room={room_id} duration={duration}s")
        self._start_task(self._runner, room_id, token, duration)

    def cancel(self, room_id: str) -> bool:
        with self._lock:
            token = self._timers.pop(room_id, None)
        if token is not None:
            logger.info(f"[timer-cancel] room={room_id}")
        return token is not None

    def _runner(self, room_id: str, token: object, duration: float) -> None:
        if duration:
            self._sleep(duration)
        self.fire(room_id, token)

    def fire(self, room_id: str, token: object) -> bool:
        """Expire the timer armed with ``token``; returns True if the room was deleted."""
        with self._registry.locked(room_id) as room:
            with self._lock:
                if self._timers.get(room_id) is not token:
                    logger.info(f"[timer-abort] room={room_id} superseded or cancelled")
                    return False
                del self._timers[room_id]
            if room is None:
                return False
            if len(room.players) >= MAX_PLAYERS:
                logger.info(f"[timer-abort] room={room_id} is full again")
                return False
            logger.info(f"[timer-fire] room={room_id} players={len(room.players)}")
            if self.on_expire is not None:
                self.on_expire(room_id, list(room.players))
            return self._registry.delete(room_id)


def _start_thread(target, *args):
    worker = threading.Thread(target=target, args=args, daemon=True)
    worker.start()
    return worker
