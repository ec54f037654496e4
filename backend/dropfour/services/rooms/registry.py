import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional, Tuple

from dropfour.models import Room, generate_room_code

logger = logging.getLogger(__name__)


class RoomRegistry:
    """In-memory map of room code -> Room.

    The registry lock only guards the map itself. Per-room work goes through
    ``locked()``, which holds the room's own lock; a room lock may be held
    while the map lock is taken, never the other way round.
    """

    def __init__(self, code_length: int = 6, code_factory: Optional[Callable[[int], str]] = None):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.RLock()
        self._code_length = code_length
        self._code_factory = code_factory or generate_room_code

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        with self._lock:
            return room_id in self._rooms

    def create(self, participant_id: Optional[str] = None) -> Tuple[str, Room]:
        """Register a new room, seating ``participant_id`` as X before it is visible."""
        with self._lock:
            while True:
                room_id = self._code_factory(self._code_length)
                if room_id not in self._rooms:
                    break
            room = Room(room_id)
            if participant_id is not None:
                room.add_player(participant_id)
            self._rooms[room_id] = room
        logger.info(f"[room-created] room={room_id}")
        return room_id, room

    def get(self, room_id: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    def delete(self, room_id: str) -> bool:
        with self._lock:
            removed = self._rooms.pop(room_id, None) is not None
        if removed:
            logger.info(f"[room-deleted] room={room_id}")
        return removed

    def room_of(self, participant_id: str) -> Optional[str]:
        """Return the code of the room the participant belongs to, if any."""
        with self._lock:
            rooms = list(self._rooms.items())
        for room_id, room in rooms:
            if room.has_player(participant_id):
                return room_id
        return None

    @contextmanager
    def locked(self, room_id: str) -> Iterator[Optional[Room]]:
        """Hold ``room_id``'s lock for the duration of the block.

        Yields None if the room does not exist, or was deleted while this
        caller waited for the lock.
        """
        room = self.get(room_id)
        if room is None:
            yield None
            return
        with room.lock:
            if self.get(room_id) is not room:
                yield None
            else:
                yield room
