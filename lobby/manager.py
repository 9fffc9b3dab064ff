"""
Main lobby management system.

Handles lobby creation and lifecycle, coordinates the connection and
session stores, and owns the game session running in each lobby.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from game.base import GameSession
from game.deduction import DeductionGame
from game.puzzle import PuzzleGame
from game.puzzle_corpus import PuzzleCorpus
from utils.constants import GAME_TYPES, HOST_COLOR, LOBBY_CONFIG, LOBBY_STATES, SESSION_CONFIG
from utils.helpers import (
    clamp_coordinate, generate_lobby_code, normalize_lobby_code,
    normalize_player_name, random_player_color
)
from utils.timers import Scheduler
from .broadcaster import Broadcaster
from .connection_manager import ConnectionManager
from .models import LobbyData, LobbyListItem, PlayerData
from .session_store import DisconnectRecord, SessionStore

logger = logging.getLogger(__name__)


class LobbyManager:
    """
    Main lobby management coordinator.

    Every operation that touches a lobby runs under that lobby's lock.
    The registry lock only guards the code -> lobby map.
    """

    def __init__(self,
                 broadcaster: Broadcaster,
                 scheduler: Scheduler,
                 corpus: PuzzleCorpus,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize lobby manager.

        Args:
            broadcaster: Outbound event fan-out
            scheduler: Timer source for grace periods, sweeps and games
            corpus: Puzzles for the connections game
            clock: Time source; defaults to the scheduler's clock
        """
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.corpus = corpus
        self.clock = clock or scheduler.now
        self.connection_manager = ConnectionManager()
        self.session_store = SessionStore(self.clock)
        self.lobbies: Dict[str, LobbyData] = {}
        self._registry_lock = threading.RLock()
        self._sweep_timer = None

    # Lookup

    def get_lobby(self, lobby_code: str) -> Optional[LobbyData]:
        with self._registry_lock:
            return self.lobbies.get(lobby_code)

    def resolve_lobby(self, connection_id: str) -> Optional[LobbyData]:
        """Lobby the connection is currently in, or None."""
        lobby_code = self.connection_manager.resolve_lobby(connection_id)
        if not lobby_code:
            return None
        return self.get_lobby(lobby_code)

    def get_lobby_list(self) -> List[LobbyListItem]:
        with self._registry_lock:
            lobbies = list(self.lobbies.values())
        return [LobbyListItem.from_lobby(lobby) for lobby in lobbies]

    def broadcast_lobby(self, lobby: LobbyData):
        self.broadcaster.to_lobby(lobby.code, 'lobby_update', lobby.to_dict())

    def _touch_session(self, connection_id: str):
        self.session_store.touch(self.connection_manager.get_session_token(connection_id))

    def _save_session(self, lobby: LobbyData, player: PlayerData):
        token = self.connection_manager.get_session_token(player.id)
        if token:
            self.session_store.save_session(
                token, lobby.code, player.id, player.name, player.color, player.is_host
            )

    # Connections

    def handle_connect(self, connection_id: str, session_token: Optional[str] = None) -> Tuple[bool, str, Optional[LobbyData]]:
        """
        Register a new connection and restore its session if it has one.

        Args:
            connection_id: New socket connection id
            session_token: Token from the client's auth payload

        Returns:
            tuple: (restored, message, lobby_data)
        """
        self.connection_manager.register_connection(connection_id)
        if not session_token:
            return False, "No session token", None
        self.connection_manager.attach_session(connection_id, session_token)
        return self.attempt_reconnection(connection_id, session_token)

    def attempt_reconnection(self, connection_id: str, session_token: str) -> Tuple[bool, str, Optional[LobbyData]]:
        """
        Put a returning player back into their lobby under a new connection id.

        Returns:
            tuple: (restored, message, lobby_data)
        """
        session = self.session_store.get_session(session_token)
        lobby = self.get_lobby(session.lobby_code) if session else None
        if not lobby or self.session_store.is_expired(session):
            self.session_store.delete_session(session_token)
            self.broadcaster.to_player(connection_id, 'session_expired', {
                'message': 'Your session has expired'
            })
            logger.info(f"Session for {connection_id} expired")
            return False, "Session expired", None

        with lobby.lock:
            if self.get_lobby(lobby.code) is not lobby:
                self.session_store.delete_session(session_token)
                self.broadcaster.to_player(connection_id, 'session_expired', {
                    'message': 'Your session has expired'
                })
                return False, "Session expired", None

            old_id = session.last_connection_id
            snapshot = session.snapshot
            now = self.clock()

            self.session_store.pop_disconnect(old_id)
            stale = self.connection_manager.detach(old_id) if old_id != connection_id else None
            if stale:
                self.broadcaster.leave(old_id, lobby.code)

            player = lobby.rekey_player(old_id, connection_id)
            rejoined = player is None
            if rejoined:
                player = PlayerData(
                    id=connection_id,
                    name=snapshot.name,
                    color=snapshot.color,
                    is_spectator=lobby.is_playing and lobby.game_type == GAME_TYPES['IMPOSTER']
                )
                lobby.players[connection_id] = player
            player.is_connected = True

            host_lost_recently = (snapshot.host_lost_at is not None and
                                  now - snapshot.host_lost_at < SESSION_CONFIG['HOST_RESTORE_WINDOW'])
            if snapshot.was_host and host_lost_recently:
                lobby.set_host(connection_id)
            elif lobby.host_id in lobby.players:
                lobby.set_host(lobby.host_id)
            else:
                lobby.set_host(connection_id)

            snapshot.was_host = lobby.host_id == connection_id
            snapshot.host_lost_at = None
            session.last_connection_id = connection_id
            session.last_seen_at = now

            self.connection_manager.associate_with_lobby(connection_id, lobby.code)
            self.broadcaster.join(connection_id, lobby.code)

            if lobby.game:
                if rejoined:
                    lobby.game.add_player(connection_id)
                else:
                    lobby.game.on_reconnect(old_id, connection_id)

            self.broadcaster.to_player(connection_id, 'session_restored', {
                'lobby': lobby.to_dict(),
                'gameType': lobby.game_type,
                'gameState': lobby.state,
                'wasHost': player.is_host,
                'message': 'Session restored'
            })
            self.broadcast_lobby(lobby)

        logger.info(f"Restored {player.name} in lobby {lobby.code} ({old_id} -> {connection_id})")
        return True, "Session restored", lobby

    def handle_disconnect(self, connection_id: str) -> bool:
        """
        Handle a dropped connection.

        Players with a session are kept for the grace period; players
        without one are removed immediately.

        Returns:
            True if the connection was in a lobby
        """
        info = self.connection_manager.detach(connection_id)
        if not info or not info.lobby_code:
            return False
        lobby = self.get_lobby(info.lobby_code)
        if not lobby:
            return False

        with lobby.lock:
            player = lobby.players.get(connection_id)
            if not player:
                return False

            session = self.session_store.get_session(info.session_token)
            if (session is None or session.lobby_code != lobby.code
                    or session.last_connection_id != connection_id):
                logger.info(f"{player.name} disconnected from {lobby.code} without a session")
                self._remove_player(lobby, connection_id)
                return True

            now = self.clock()
            was_host = lobby.host_id == connection_id
            player.is_connected = False
            session.last_seen_at = now
            session.snapshot.was_host = was_host
            if was_host:
                session.snapshot.host_lost_at = now

            self.broadcaster.to_lobby(lobby.code, 'lobby_cursor_remove',
                                      {'playerId': connection_id}, skip_id=connection_id)
            if lobby.game:
                lobby.game.on_disconnect(connection_id)

            grace = SESSION_CONFIG['RECONNECT_GRACE_PERIOD']
            timer = self.scheduler.schedule(grace, self._evict_disconnected, connection_id, lock=lobby.lock)
            self.session_store.record_disconnect(DisconnectRecord(
                connection_id=connection_id,
                lobby_code=lobby.code,
                token=info.session_token,
                disconnected_at=now,
                was_host=was_host,
                deadline=now + grace,
                timer=timer
            ))

            if was_host:
                new_host = lobby.first_player_id(exclude=connection_id)
                if new_host:
                    lobby.set_host(new_host)
                    logger.info(f"Host of {lobby.code} temporarily passed to {new_host}")

            self.broadcast_lobby(lobby)

        logger.info(f"{player.name} disconnected from {lobby.code}, holding slot for {grace}s")
        return True

    def _evict_disconnected(self, connection_id: str):
        record = self.session_store.pop_disconnect(connection_id)
        if not record:
            return
        session = self.session_store.get_session(record.token)
        if session and session.last_connection_id == connection_id:
            self.session_store.delete_session(record.token)

        lobby = self.get_lobby(record.lobby_code)
        if lobby and connection_id in lobby.players:
            logger.info(f"Grace period over for {connection_id} in {lobby.code}")
            self._remove_player(lobby, connection_id)

    # Lobby lifecycle

    def create_lobby(self, connection_id: str, player_name: Any,
                     game_type: Optional[str] = None,
                     settings: Optional[Dict[str, Any]] = None) -> Tuple[bool, str, Optional[LobbyData]]:
        """
        Create a new lobby with the caller as host.

        Args:
            connection_id: Creator's connection id
            player_name: Creator's display name
            game_type: Optional game type to preselect
            settings: Optional initial game settings

        Returns:
            tuple: (success, message, lobby_data)
        """
        if self.resolve_lobby(connection_id):
            self.leave_lobby(connection_id)

        valid_type = game_type if game_type in GAME_TYPES.values() else None
        player = PlayerData(
            id=connection_id,
            name=normalize_player_name(player_name),
            color=HOST_COLOR,
            is_host=True
        )

        with self._registry_lock:
            lobby = LobbyData(
                code=generate_lobby_code(existing_codes=self.lobbies.keys()),
                host_id=connection_id,
                players={connection_id: player},
                game_type=valid_type,
                settings=dict(settings) if isinstance(settings, dict) else {},
                state=LOBBY_STATES['WAITING'] if valid_type else LOBBY_STATES['SELECTING']
            )
            self.lobbies[lobby.code] = lobby

        with lobby.lock:
            self.connection_manager.associate_with_lobby(connection_id, lobby.code)
            self.broadcaster.join(connection_id, lobby.code)
            self._save_session(lobby, player)
            self.broadcast_lobby(lobby)

        logger.info(f"Created lobby {lobby.code} for {player.name}")
        return True, "Lobby created successfully", lobby

    def join_lobby(self, connection_id: str, lobby_code: Any, player_name: Any) -> Tuple[bool, str, Optional[LobbyData]]:
        """
        Add a player to a lobby.

        Joining a running imposter game makes the player a spectator;
        joining a running connections game makes them a participant.

        Returns:
            tuple: (success, message, lobby_data)
        """
        code = normalize_lobby_code(lobby_code)
        lobby = self.get_lobby(code)
        if not lobby:
            return False, "Lobby not found", None

        current = self.resolve_lobby(connection_id)
        if current is lobby and connection_id in lobby.players:
            return True, "Already in lobby", lobby
        if current:
            self.leave_lobby(connection_id)

        with lobby.lock:
            if self.get_lobby(code) is not lobby:
                return False, "Lobby not found", None

            player = PlayerData(
                id=connection_id,
                name=normalize_player_name(player_name),
                color=random_player_color(),
                is_spectator=lobby.is_playing and lobby.game_type == GAME_TYPES['IMPOSTER']
            )
            lobby.players[connection_id] = player
            self.connection_manager.associate_with_lobby(connection_id, code)
            self.broadcaster.join(connection_id, code)
            self._save_session(lobby, player)

            if lobby.is_playing and lobby.game:
                lobby.game.add_player(connection_id)

            self.broadcast_lobby(lobby)

        logger.info(f"{player.name} joined lobby {code}{' as spectator' if player.is_spectator else ''}")
        return True, "Joined lobby", lobby

    def leave_lobby(self, connection_id: str) -> Tuple[bool, str, Optional[str]]:
        """
        Remove a player from their lobby at their own request.

        Also forgets the player's session so a page reload starts fresh.

        Returns:
            tuple: (success, message, lobby_code)
        """
        lobby = self.resolve_lobby(connection_id)
        if not lobby:
            return False, "Not in a lobby", None

        with lobby.lock:
            token = self.connection_manager.get_session_token(connection_id)
            session = self.session_store.get_session(token)
            if session and session.last_connection_id == connection_id:
                self.session_store.delete_session(token)
            self._remove_player(lobby, connection_id, leave_room=True)

        logger.info(f"{connection_id} left lobby {lobby.code}")
        return True, "Left lobby", lobby.code

    def _remove_player(self, lobby: LobbyData, connection_id: str, leave_room: bool = False):
        """Fully remove a player; deletes the lobby when it empties. Caller holds the lobby lock."""
        self.session_store.pop_disconnect(connection_id)
        if connection_id not in lobby.players:
            return

        if lobby.game:
            lobby.game.remove_player(connection_id)
        self.broadcaster.to_lobby(lobby.code, 'lobby_cursor_remove',
                                  {'playerId': connection_id}, skip_id=connection_id)

        del lobby.players[connection_id]
        self.connection_manager.disassociate_from_lobby(connection_id)
        if leave_room:
            self.broadcaster.leave(connection_id, lobby.code)

        if not lobby.players:
            self._delete_lobby(lobby)
            return

        if lobby.host_id not in lobby.players:
            lobby.set_host(lobby.first_player_id())
            logger.info(f"Host of {lobby.code} passed to {lobby.host_id}")

        self.broadcast_lobby(lobby)

    def _delete_lobby(self, lobby: LobbyData):
        with self._registry_lock:
            if self.lobbies.get(lobby.code) is lobby:
                del self.lobbies[lobby.code]
        if lobby.game:
            lobby.game.dispose()
            lobby.game = None
        self.connection_manager.forget_lobby(lobby.code)
        logger.info(f"Deleted empty lobby {lobby.code}")

    # Host controls

    def select_gamemode(self, connection_id: str, game_type: Optional[str],
                        settings: Optional[Dict[str, Any]] = None) -> bool:
        """
        Choose (or clear) the lobby's game type. Host only.

        Returns:
            True if the lobby changed
        """
        lobby = self.resolve_lobby(connection_id)
        if not lobby:
            return False

        with lobby.lock:
            if lobby.host_id != connection_id:
                logger.debug(f"Ignoring gamemode change from non-host {connection_id}")
                return False
            if lobby.is_playing:
                logger.debug(f"Ignoring gamemode change in {lobby.code}: game running")
                return False

            if not game_type:
                lobby.game_type = None
                lobby.state = LOBBY_STATES['SELECTING']
            elif game_type in GAME_TYPES.values():
                lobby.game_type = game_type
                lobby.state = LOBBY_STATES['WAITING']
                if isinstance(settings, dict):
                    lobby.settings.update(settings)
            else:
                logger.debug(f"Ignoring unknown game type {game_type!r}")
                return False

            self._touch_session(connection_id)
            self.broadcast_lobby(lobby)
        return True

    def start_game(self, connection_id: str, settings: Optional[Dict[str, Any]] = None) -> bool:
        """
        Start the selected game. Host only, from the waiting state.

        The lobby switches to playing right away; the game itself is
        created a moment later so clients see the state change first.

        Returns:
            True if the game is starting
        """
        lobby = self.resolve_lobby(connection_id)
        if not lobby:
            return False

        with lobby.lock:
            if lobby.host_id != connection_id:
                logger.debug(f"Ignoring start from non-host {connection_id}")
                return False
            if lobby.state != LOBBY_STATES['WAITING'] or not lobby.game_type:
                logger.debug(f"Ignoring start in {lobby.code}: state is {lobby.state}")
                return False

            if isinstance(settings, dict):
                lobby.settings.update(settings)
            lobby.state = LOBBY_STATES['PLAYING']
            self._touch_session(connection_id)
            self.broadcast_lobby(lobby)
            self.scheduler.schedule(LOBBY_CONFIG['GAME_START_DELAY'], self._launch_game,
                                    lobby.code, lock=lobby.lock)

        logger.info(f"Starting {lobby.game_type} game in lobby {lobby.code}")
        return True

    def _create_game(self, lobby: LobbyData) -> GameSession:
        if lobby.game_type == GAME_TYPES['IMPOSTER']:
            return DeductionGame(lobby, self.broadcaster, self.scheduler, self.on_game_end)
        return PuzzleGame(lobby, self.broadcaster, self.scheduler, self.on_game_end, corpus=self.corpus)

    def _launch_game(self, lobby_code: str):
        lobby = self.get_lobby(lobby_code)
        if not lobby or not lobby.is_playing or lobby.game:
            return
        lobby.game = self._create_game(lobby)
        lobby.game.start()

    def on_game_end(self, lobby_code: str, game: GameSession):
        """Return the lobby to gamemode selection once its game is over."""
        lobby = self.get_lobby(lobby_code)
        if not lobby or lobby.game is not game:
            return
        with lobby.lock:
            lobby.reset_after_game()
            self.broadcast_lobby(lobby)
        logger.info(f"Lobby {lobby_code} back to gamemode selection")

    # In-game and cosmetic actions

    def handle_game_action(self, connection_id: str, action: str, data: Optional[Dict[str, Any]]) -> bool:
        """
        Forward a player action to the lobby's running game.

        Returns:
            True if the game accepted the action
        """
        lobby = self.resolve_lobby(connection_id)
        if not lobby:
            return False
        with lobby.lock:
            if not lobby.game or connection_id not in lobby.players:
                logger.debug(f"Ignoring {action} from {connection_id}: no running game")
                return False
            self._touch_session(connection_id)
            return lobby.game.handle_action(connection_id, action, data)

    def update_player_color(self, connection_id: str, color: Any) -> bool:
        lobby = self.resolve_lobby(connection_id)
        if not lobby or not isinstance(color, str) or not color:
            return False

        with lobby.lock:
            player = lobby.players.get(connection_id)
            if not player:
                return False
            player.color = color
            session = self.session_store.get_session(self.connection_manager.get_session_token(connection_id))
            if session:
                session.snapshot.color = color
                session.last_seen_at = self.clock()
            self.broadcast_lobby(lobby)
        return True

    def move_lobby_cursor(self, connection_id: str, data: Optional[Dict[str, Any]]) -> bool:
        lobby = self.resolve_lobby(connection_id)
        if not lobby:
            return False
        data = data if isinstance(data, dict) else {}

        with lobby.lock:
            player = lobby.players.get(connection_id)
            if not player:
                return False
            self.broadcaster.to_lobby(lobby.code, 'lobby_cursor_update', {
                'playerId': connection_id,
                'playerName': player.name,
                'playerColor': player.color,
                'x': clamp_coordinate(data.get('x')),
                'y': clamp_coordinate(data.get('y'))
            }, skip_id=connection_id)
        return True

    # Maintenance

    def start_session_sweep(self):
        """Begin the periodic removal of expired sessions."""
        self._sweep_timer = self.scheduler.schedule(SESSION_CONFIG['CLEANUP_INTERVAL'], self._run_session_sweep)

    def stop_session_sweep(self):
        self.scheduler.cancel(self._sweep_timer)
        self._sweep_timer = None

    def _run_session_sweep(self):
        self.session_store.sweep_expired()
        self.start_session_sweep()

    def get_stats(self) -> Dict[str, Any]:
        """
        Summarize lobbies and sessions for the health endpoint.

        Returns:
            Dictionary with lobby statistics
        """
        with self._registry_lock:
            lobbies = list(self.lobbies.values())
        return {
            'total_lobbies': len(lobbies),
            'active_games': sum(1 for lobby in lobbies if lobby.game is not None),
            'lobbies': [
                {
                    'code': lobby.code,
                    'players': lobby.player_count,
                    'state': lobby.state,
                    'gameType': lobby.game_type
                }
                for lobby in lobbies
            ],
            **self.session_store.get_stats(),
            **self.connection_manager.get_connection_stats()
        }
