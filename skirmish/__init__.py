# skirmish/__init__.py
from .config import load_config
from .engine.orchestrator import CombatManager
from .routes import skirmish_bp
from .sockets import SocketBroadcaster, register_skirmish_socket_handlers, run_game_loop
from .state import RoomDirectory


def init_skirmish(app, socketio, rooms=None, start_loop=True):
    config = load_config(app.config.get("SKIRMISH_RULES"))
    rooms = rooms or RoomDirectory(classes=config.classes)
    manager = CombatManager(rooms, config, broadcaster=SocketBroadcaster(socketio))
    app.extensions["skirmish"] = manager
    app.register_blueprint(skirmish_bp)
    register_skirmish_socket_handlers(socketio, manager, rooms)
    if start_loop:
        socketio.start_background_task(run_game_loop, socketio, manager)
    return manager
