"""
Party Arcade - lobby and mini-game server.

Flask-SocketIO backend that serves a browser frontend. Players gather in
lobbies and play either the imposter deduction game or the collaborative
connections word puzzle. App.py is pure server setup and handler
registration; all behavior lives in the lobby/ and game/ packages.
"""

import logging
from typing import Callable, Optional

from flask import Flask
from flask_socketio import SocketIO
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from config import settings
from game.puzzle_corpus import PuzzleCorpus
from handlers import register_socket_handlers, register_api_handlers
from lobby import Broadcaster, LobbyManager
from utils.timers import Scheduler, SocketIOScheduler

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(scheduler: Optional[Scheduler] = None,
               corpus: Optional[PuzzleCorpus] = None,
               clock: Optional[Callable[[], float]] = None,
               async_mode: Optional[str] = None):
    """
    Application factory that creates and configures the Flask app.

    Args:
        scheduler: Timer source; defaults to Socket.IO background tasks
        corpus: Puzzle corpus; defaults to the archive at PUZZLE_ARCHIVE_PATH
        clock: Time source for sessions; defaults to the scheduler's clock
        async_mode: Socket.IO async mode; defaults to SOCKETIO_ASYNC_MODE

    Returns:
        Tuple of (app, socketio)
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = settings.SECRET_KEY

    # CORS configuration for the browser frontend
    origins = settings.CORS_ORIGINS.split(',')
    CORS(app, origins=origins)

    # ProxyFix for deployment behind reverse proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    socketio = SocketIO(
        app,
        cors_allowed_origins=origins,
        async_mode=async_mode or settings.SOCKETIO_ASYNC_MODE,
        ping_timeout=60,
        ping_interval=25
    )

    logger.info("Initializing lobby manager...")
    scheduler = scheduler or SocketIOScheduler(socketio)
    corpus = corpus or PuzzleCorpus.from_file(settings.PUZZLE_ARCHIVE_PATH)
    lobby_manager = LobbyManager(
        broadcaster=Broadcaster(socketio),
        scheduler=scheduler,
        corpus=corpus,
        clock=clock
    )
    app.extensions['lobby_manager'] = lobby_manager

    logger.info("Registering handlers...")
    register_socket_handlers(socketio, lobby_manager)
    register_api_handlers(app, lobby_manager)

    lobby_manager.start_session_sweep()

    logger.info("Application initialization complete")
    return app, socketio


def main():
    """Main entry point for development server."""
    app, socketio = create_app()

    logger.info(f"Starting Party Arcade server on port {settings.PORT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"CORS origins: {settings.CORS_ORIGINS}")

    socketio.run(app, debug=settings.DEBUG, port=settings.PORT, host='0.0.0.0')


if __name__ == '__main__':
    main()
