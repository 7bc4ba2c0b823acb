"""Who is on the other end of each socket.

Every live connection that has joined a quiz gets one ``Connection`` record:
the session it belongs to and whether it is the host or a named player.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from quizroom.errors import AlreadyStarted, DuplicateName, ValidationError
from quizroom.models import LOBBY, MAX_PLAYER_NAME_LENGTH, Player, Session
from .broadcast import BroadcastGateway
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

HOST = 'host'
PLAYER = 'player'


@dataclass
class Connection:
    sid: str
    session_id: str
    role: str
    player_name: Optional[str] = None

    @property
    def is_host(self) -> bool:
        return self.role == HOST


class ConnectionRegistry:
    def __init__(self, sessions: SessionRegistry, gateway: BroadcastGateway):
        self.sessions = sessions
        self.gateway = gateway
        self._by_sid: Dict[str, Connection] = {}

    def get(self, sid: str) -> Optional[Connection]:
        return self._by_sid.get(sid)

    def session_for(self, sid: str) -> Tuple[Optional[Connection], Optional[Session]]:
        conn = self._by_sid.get(sid)
        if conn is None:
            return None, None
        return conn, self.sessions.get(conn.session_id)

    def for_session(self, session_id: str) -> List[Connection]:
        return [c for c in self._by_sid.values() if c.session_id == session_id]

    def bind_host(self, session_id, sid: str) -> Session:
        """Make ``sid`` the host of the session; the last host to bind wins."""
        session = self.sessions.require(session_id)
        if sid in session.players:
            raise ValidationError('A player cannot host this quiz')
        self._release_other_session(sid, session.id)
        session.host_sid = sid
        self._by_sid[sid] = Connection(sid=sid, session_id=session.id, role=HOST)
        self.gateway.join(sid, session)
        self.gateway.to_connection(sid, 'host:session', session.to_snapshot())
        logger.info(f"[host-join] session={session.id} sid={sid}")
        return session

    def join_player(self, session_id, sid: str, name) -> Tuple[Session, Player, bool]:
        """Join a new player or resume an existing one by name.

        Returns the session, the player record and whether this was a
        reconnect.
        """
        session = self.sessions.require(session_id)
        if not isinstance(name, str) or not name.strip():
            raise ValidationError('Player name is required')
        name = name.strip()[:MAX_PLAYER_NAME_LENGTH]

        current = self._by_sid.get(sid)
        if current is not None and current.session_id == session.id:
            if current.is_host:
                raise ValidationError('The host cannot join as a player')
            if sid in session.players and session.players[sid].name.lower() != name.lower():
                raise ValidationError('Already joined this quiz')

        match = session.find_player(name)
        if match is not None:
            old_sid, player = match
            if old_sid != sid:
                del session.players[old_sid]
                session.seat(sid, player)
                self._by_sid.pop(old_sid, None)
            reconnect = True
            logger.info(f"[player-reconnect] session={session.id} name={player.name} sid={sid}")
        elif name.lower() in session.departed:
            player = session.departed.pop(name.lower())
            session.seat(sid, player)
            reconnect = True
            logger.info(f"[player-reconnect] session={session.id} name={player.name} sid={sid} score={player.score}")
        else:
            if session.status != LOBBY:
                raise AlreadyStarted()
            if name.lower() in {p.name.lower() for p in session.players.values()}:
                raise DuplicateName()
            player = Player(name=name)
            session.seat(sid, player)
            reconnect = False
            logger.info(f"[player-join] session={session.id} name={name} sid={sid}")

        self._release_other_session(sid, session.id)
        self._by_sid[sid] = Connection(sid=sid, session_id=session.id, role=PLAYER, player_name=player.name)
        self.gateway.join(sid, session)
        self.broadcast_roster(session)
        return session, player, reconnect

    def unbind(self, sid: str) -> None:
        conn = self._by_sid.pop(sid, None)
        if conn is None:
            return
        session = self.sessions.get(conn.session_id)
        if session is None:
            return

        if conn.is_host:
            if session.host_sid != sid:
                # a newer host connection took over this session
                return
            self.end_session(session, 'Host disconnected')
            return

        player = session.players.pop(sid, None)
        if player is not None:
            # out of the current round; score is kept in case the player rejoins
            player.reset_answer()
            session.departed[player.name.lower()] = player
            logger.info(f"[player-left] session={session.id} name={player.name}")
            self.broadcast_roster(session)

    def end_session(self, session: Session, reason: str) -> None:
        self.sessions.delete(session.id)
        self.gateway.to_room(session, 'session:ended', {'reason': reason})
        self.release(session)
        logger.info(f"[session-ended] session={session.id} reason={reason}")

    def release(self, session: Session) -> None:
        """Close the session's room and forget every connection bound to it."""
        self.gateway.close(session)
        for conn in self.for_session(session.id):
            del self._by_sid[conn.sid]

    def broadcast_roster(self, session: Session) -> None:
        self.gateway.to_room(session, 'lobby:players', {
            'quizName': session.name,
            'players': session.roster(),
        })

    def _release_other_session(self, sid: str, session_id: str) -> None:
        current = self._by_sid.get(sid)
        if current is not None and current.session_id != session_id:
            self.unbind(sid)
