from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from chessroom.routes import main
    flask_app.register_blueprint(main)

    # One registry and one clock per app; handlers and the worker share them
    from chessroom.services.rooms.registry import RoomRegistry
    from chessroom.services.rooms.clock import ClockSynchronizer, start_clock_worker
    from chessroom.socketio_events import make_notifier, register_socketio_handlers

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    notify = make_notifier(namespace)
    registry = RoomRegistry(
        notify,
        max_rooms=int(flask_app.config.get('MAX_ROOMS', 100)),
        clock_seconds=int(flask_app.config.get('CLOCK_SECONDS', 900)),
    )
    flask_app.extensions['rooms'] = registry
    flask_app.extensions['room_clock'] = ClockSynchronizer(
        registry,
        notify,
        resync_interval=int(flask_app.config.get('CLOCK_RESYNC_SEC', 10)),
        logger=flask_app.logger,
    )

    # Register Socket.IO event handlers
    register_socketio_handlers(namespace)
    start_clock_worker(flask_app)

    return flask_app
