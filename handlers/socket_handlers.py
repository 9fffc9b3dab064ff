"""
Socket.IO Event Handlers for Party Arcade.

Pure routing layer that delegates to the lobby manager.
Contains no business logic - only event routing and acknowledgement formatting.
"""

import logging
from flask import request

logger = logging.getLogger(__name__)

# Client events forwarded to the running game unchanged
GAME_ACTION_EVENTS = [
    'submit_word',
    'cast_vote',
    'imposter_cursor_move',
    'cursor_move',
    'select_word',
    'submit_group',
    'use_hint',
    'shuffle_words'
]


def _payload(data):
    return data if isinstance(data, dict) else {}


def register_socket_handlers(socketio, lobby_manager):
    """
    Register all Socket.IO event handlers.

    Args:
        socketio: SocketIO instance
        lobby_manager: Lobby management instance
    """

    @socketio.on('connect')
    def handle_connect(auth=None):
        """Handle client connection, restoring the player's session if possible."""
        session_token = auth.get('sessionId') if isinstance(auth, dict) else None
        logger.info(f"Client connected: {request.sid}")

        try:
            lobby_manager.handle_connect(request.sid, session_token)
        except Exception as e:
            logger.error(f"Error handling connect for {request.sid}: {e}", exc_info=True)

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        """Handle client disconnection."""
        logger.info(f"Client disconnected: {request.sid}")

        try:
            lobby_manager.handle_disconnect(request.sid)
        except Exception as e:
            logger.error(f"Error handling disconnect: {e}", exc_info=True)

    @socketio.on('create_lobby')
    def handle_create_lobby(data=None):
        """Handle lobby creation request."""
        data = _payload(data)
        try:
            success, message, lobby = lobby_manager.create_lobby(
                request.sid,
                data.get('playerName'),
                game_type=data.get('gameType'),
                settings=data.get('settings')
            )
            if success and lobby:
                return {'success': True, 'lobbyCode': lobby.code, 'lobby': lobby.to_dict()}
            return {'success': False, 'error': message}

        except Exception as e:
            logger.error(f"Error creating lobby: {e}", exc_info=True)
            return {'success': False, 'error': 'Failed to create lobby'}

    @socketio.on('join_lobby')
    def handle_join_lobby(data=None):
        """Handle player joining a lobby."""
        data = _payload(data)
        try:
            success, message, lobby = lobby_manager.join_lobby(
                request.sid,
                data.get('lobbyCode'),
                data.get('playerName')
            )
            if success and lobby:
                return {'success': True, 'lobby': lobby.to_dict()}
            return {'success': False, 'error': message}

        except Exception as e:
            logger.error(f"Error joining lobby: {e}", exc_info=True)
            return {'success': False, 'error': 'Failed to join lobby'}

    @socketio.on('leave_lobby')
    def handle_leave_lobby(*args):
        """Handle player leaving their lobby."""
        try:
            success, message, lobby_code = lobby_manager.leave_lobby(request.sid)
            return {'success': success}

        except Exception as e:
            logger.error(f"Error leaving lobby: {e}", exc_info=True)
            return {'success': False}

    @socketio.on('get_lobby_list')
    def handle_get_lobby_list(*args):
        """Return every open lobby."""
        try:
            lobbies = lobby_manager.get_lobby_list()
            return {'success': True, 'lobbies': [item.to_dict() for item in lobbies]}

        except Exception as e:
            logger.error(f"Error listing lobbies: {e}", exc_info=True)
            return {'success': False, 'lobbies': []}

    @socketio.on('select_gamemode')
    def handle_select_gamemode(data=None):
        """Handle the host choosing a game."""
        data = _payload(data)
        try:
            lobby_manager.select_gamemode(request.sid, data.get('gameType'), data.get('settings'))
        except Exception as e:
            logger.error(f"Error selecting gamemode: {e}", exc_info=True)

    @socketio.on('start_game')
    def handle_start_game(data=None):
        """Handle the host starting the game."""
        data = _payload(data)
        try:
            lobby_manager.start_game(request.sid, data.get('settings'))
        except Exception as e:
            logger.error(f"Error starting game: {e}", exc_info=True)

    @socketio.on('update_player_color')
    def handle_update_player_color(data=None):
        """Handle a player picking a new color."""
        try:
            lobby_manager.update_player_color(request.sid, _payload(data).get('color'))
        except Exception as e:
            logger.error(f"Error updating player color: {e}", exc_info=True)

    @socketio.on('lobby_cursor_move')
    def handle_lobby_cursor_move(data=None):
        """Relay a cursor position in the lobby view."""
        try:
            lobby_manager.move_lobby_cursor(request.sid, _payload(data))
        except Exception as e:
            logger.error(f"Error moving lobby cursor: {e}", exc_info=True)

    def register_game_action(event):
        def handle_game_action(data=None):
            try:
                lobby_manager.handle_game_action(request.sid, event, _payload(data))
            except Exception as e:
                logger.error(f"Error handling {event}: {e}", exc_info=True)

        socketio.on_event(event, handle_game_action)

    for event in GAME_ACTION_EVENTS:
        register_game_action(event)

    logger.info("Socket.IO handlers registered successfully")
