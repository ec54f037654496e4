import logging
from contextlib import nullcontext
from typing import Any, Optional

from dropfour.models import BOARD_SIZE

from .registry import RoomRegistry
from .scheduler import GracePeriodManager

logger = logging.getLogger(__name__)

ROOM_NOT_FOUND = 'Room not found'
ROOM_FULL = 'Room full'
NOT_YOUR_TURN = 'Not your turn'
ALREADY_IN_ROOM = 'Already in this room'


class Channel:
    """Outbound side of the transport, as seen by the coordinator."""

    def send(self, participant_id: str, event: str, payload: Any) -> None:
        raise NotImplementedError

    def broadcast(self, room_id: str, event: str, payload: Any) -> None:
        raise NotImplementedError

    def subscribe(self, participant_id: str, room_id: str) -> None:
        raise NotImplementedError

    def unsubscribe(self, participant_id: str, room_id: str) -> None:
        raise NotImplementedError


def normalize_room_id(room_id) -> Optional[str]:
    if not isinstance(room_id, str):
        return None
    return room_id.strip().upper() or None


class SessionCoordinator:
    """Turns inbound client events into room transitions and outbound events.

    Every state-affecting step runs inside ``registry.locked(room_id)`` so the
    operations on one room are applied one at a time. Rooms do not share
    locks, so traffic for different rooms never waits on each other.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        grace: GracePeriodManager,
        channel: Channel,
        grace_period_sec: float = 300,
    ):
        self.registry = registry
        self.grace = grace
        self.channel = channel
        self.grace_period_sec = grace_period_sec
        self.grace.on_expire = self._expired

    # ---- inbound events ----

    def create_room(self, participant_id: str) -> str:
        self.leave(participant_id)
        room_id, _ = self.registry.create(participant_id)
        with self.registry.locked(room_id) as room:
            role = room.role_of(participant_id)
            self.channel.subscribe(participant_id, room_id)
            self.channel.send(participant_id, 'roomCreated', {'roomId': room_id, 'role': role})
        return room_id

    def join_room(self, participant_id: str, room_id) -> bool:
        room_id = normalize_room_id(room_id)
        if room_id is None or room_id not in self.registry:
            return self._reject(participant_id, ROOM_NOT_FOUND)

        current = self.registry.room_of(participant_id)
        if current == room_id:
            return self._reject(participant_id, ALREADY_IN_ROOM)
        if current is not None:
            # Vet the target before giving up the old seat; the lock is not
            # held across leave() since that takes the other room's lock
            with self.registry.locked(room_id) as room:
                error = self._join_error(room)
            if error:
                return self._reject(participant_id, error)
            self.leave(participant_id)

        with self.registry.locked(room_id) as room:
            error = self._join_error(room)
            if error:
                return self._reject(participant_id, error)

            self.grace.cancel(room_id)
            # Vacant seat: O normally, X if the creator left and O stayed
            role = room.add_player(participant_id)
            self.channel.subscribe(participant_id, room_id)
            self.channel.send(participant_id, 'roomJoined', {'roomId': room_id, 'role': role})
            self.channel.broadcast(room_id, 'gameStart', {
                'board': room.board.to_list(),
                'currentPlayer': room.current_player,
                'players': len(room.players),
            })
            logger.info(f"[room-joined] room={room_id} role={role} players={len(room.players)}")
        return True

    def make_move(self, participant_id: str, data) -> bool:
        if not isinstance(data, dict):
            return False
        room_id = normalize_room_id(data.get('roomId'))
        col = data.get('col')

        with self._room(room_id) as room:
            if room is None:
                return self._reject(participant_id, ROOM_NOT_FOUND)
            if room.game_over:
                return False
            if not room.is_turn_of(participant_id):
                return self._reject(participant_id, NOT_YOUR_TURN)
            if not _valid_column(col):
                return False

            outcome = room.play(col)
            if outcome is None:
                # Column full
                return False
            if outcome['event'] == 'gameOver':
                logger.info(f"[game-over] room={room_id} winner={outcome['payload']['winner']}")
            self.channel.broadcast(room_id, outcome['event'], outcome['payload'])
        return True

    def reset_game(self, participant_id: str, room_id) -> bool:
        room_id = normalize_room_id(room_id)
        with self._room(room_id) as room:
            if room is None:
                return False
            room.reset()
            self.channel.broadcast(room_id, 'gameReset', {
                'board': room.board.to_list(),
                'currentPlayer': room.current_player,
            })
            logger.info(f"[game-reset] room={room_id} by={participant_id}")
        return True

    def disconnect(self, participant_id: str) -> None:
        self.leave(participant_id)

    # ---- departures ----

    def leave(self, participant_id: str) -> Optional[str]:
        """Remove the participant from whatever room holds it.

        Returns the room code it left, or None if it was not in a room.
        """
        room_id = self.registry.room_of(participant_id)
        if room_id is None:
            return None
        with self.registry.locked(room_id) as room:
            if room is None or not room.has_player(participant_id):
                return None
            remaining = room.remove_player(participant_id)
            self.channel.unsubscribe(participant_id, room_id)
            logger.info(f"[player-left] room={room_id} remaining={remaining}")

            if remaining == 0:
                self.registry.delete(room_id)
                self.grace.cancel(room_id)
            elif remaining == 1:
                self.channel.broadcast(room_id, 'playerDisconnected', {
                    'message': self.disconnect_message(),
                })
                self.grace.schedule(room_id, self.grace_period_sec)
        return room_id

    def disconnect_message(self) -> str:
        minutes = max(1, round(self.grace_period_sec / 60))
        unit = 'minute' if minutes == 1 else 'minutes'
        return f'Opponent disconnected. The room will be deleted in {minutes} {unit} unless they return.'

    # ---- helpers ----

    def _room(self, room_id: Optional[str]):
        if room_id is None:
            return nullcontext()
        return self.registry.locked(room_id)

    def _join_error(self, room) -> Optional[str]:
        if room is None:
            return ROOM_NOT_FOUND
        if room.is_full():
            return ROOM_FULL
        return None

    def _expired(self, room_id: str, members) -> None:
        for participant_id in members:
            self.channel.unsubscribe(participant_id, room_id)

    def _reject(self, participant_id: str, message: str) -> bool:
        logger.debug(f"[rejected] participant={participant_id} reason={message}")
        self.channel.send(participant_id, 'error', message)
        return False


def _valid_column(col) -> bool:
    return isinstance(col, int) and not isinstance(col, bool) and 0 <= col < BOARD_SIZE

