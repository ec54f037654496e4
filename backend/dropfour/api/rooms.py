from flask import Blueprint, current_app, jsonify

from dropfour.services.rooms.session import ROOM_NOT_FOUND, normalize_room_id

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room_state(room_id):
    """
    Returns a read-only snapshot of a room: status, seats, turn and board.
    """
    registry = current_app.extensions['dropfour'].registry
    with registry.locked(normalize_room_id(room_id)) as room:
        if room is None:
            return jsonify({'error': ROOM_NOT_FOUND}), 404
        payload = room.to_dict()
    payload['gracePeriodPending'] = current_app.extensions['dropfour'].grace.pending(payload['roomId'])
    return jsonify(payload)
