# skirmish/server.py
import logging
import os

from flask import Flask
from flask_socketio import SocketIO

from . import init_skirmish


def create_app(config=None, start_loop=True):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("SKIRMISH_SECRET_KEY", "dev")
    if config:
        app.config.update(config)
    socketio = SocketIO(app, cors_allowed_origins="*")
    init_skirmish(app, socketio, start_loop=start_loop)
    return app, socketio


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app, socketio = create_app()
    port = int(os.environ.get("SKIRMISH_PORT") or os.environ.get("PORT") or 3000)
    socketio.run(app, host="0.0.0.0", port=port, allow_unsafe_werkzeug=True)
