import logging

from flask import current_app, has_app_context, request
from flask_socketio import join_room, leave_room

from dropfour import socketio
from dropfour.services.rooms import Channel, SessionCoordinator

logger = logging.getLogger(__name__)


class SocketIOChannel(Channel):
    """Channel backed by Socket.IO rooms; participant ids are socket sids."""

    def __init__(self, server, namespace='/'):
        self.server = server
        self.namespace = namespace

    def send(self, participant_id, event, payload):
        self.server.emit(event, payload, to=participant_id, namespace=self.namespace)

    def broadcast(self, room_id, event, payload):
        self.server.emit(event, payload, to=room_id, namespace=self.namespace)

    def subscribe(self, participant_id, room_id):
        join_room(room_id, sid=participant_id, namespace=self.namespace)

    def unsubscribe(self, participant_id, room_id):
        if has_app_context():
            leave_room(room_id, sid=participant_id, namespace=self.namespace)
        else:
            # Grace-period expiry runs in a background task with no app context
            self.server.server.leave_room(participant_id, room_id, namespace=self.namespace)


def _coordinator() -> SessionCoordinator:
    return current_app.extensions['dropfour']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")
    _coordinator().disconnect(_get_sid())


def handle_create_room(data=None):
    _coordinator().create_room(_get_sid())


def handle_join_room(room_id=None):
    _coordinator().join_room(_get_sid(), room_id)


def handle_make_move(data=None):
    _coordinator().make_move(_get_sid(), data)


def handle_reset_game(room_id=None):
    _coordinator().reset_game(_get_sid(), room_id)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createRoom', handle_create_room, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('makeMove', handle_make_move, namespace=namespace)
    socketio.on_event('resetGame', handle_reset_game, namespace=namespace)
