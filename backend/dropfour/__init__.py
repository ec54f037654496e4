from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _origins(config):
    origins = config.get('ALLOWED_ORIGINS') or ['*']
    if isinstance(origins, str):
        origins = origins.split(',')
    return '*' if '*' in origins else origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = _origins(flask_app.config)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Room state lives on the app so every handler and route shares one registry
    from dropfour.services.rooms import GracePeriodManager, RoomRegistry, SessionCoordinator
    from dropfour.socketio_events import SocketIOChannel, register_socketio_handlers

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    registry = RoomRegistry(code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6)))
    grace = GracePeriodManager(
        registry,
        start_task=socketio.start_background_task,
        sleep=socketio.sleep,
    )
    flask_app.extensions['dropfour'] = SessionCoordinator(
        registry,
        grace,
        SocketIOChannel(socketio, namespace=namespace),
        grace_period_sec=float(flask_app.config.get('ROOM_GRACE_PERIOD_SEC', 300)),
    )

    # Import and register blueprints here
    from dropfour.main import main
    flask_app.register_blueprint(main)

    from dropfour.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers
    register_socketio_handlers(namespace=namespace)

    return flask_app
