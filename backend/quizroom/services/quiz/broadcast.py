import logging

from quizroom.models import Session

logger = logging.getLogger(__name__)


class BroadcastGateway:
    """Delivers quiz events over Socket.IO.

    Delivery is best-effort: a member that has gone away simply receives
    nothing, and a failed emit is logged instead of raised.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def to_room(self, session: Session, event: str, payload) -> None:
        self._emit(event, payload, session.room)

    def to_host(self, session: Session, event: str, payload) -> None:
        if session.host_sid:
            self._emit(event, payload, session.host_sid)

    def to_connection(self, sid: str, event: str, payload) -> None:
        self._emit(event, payload, sid)

    def join(self, sid: str, session: Session) -> None:
        self.socketio.server.enter_room(sid, session.room, namespace=self.namespace)

    def close(self, session: Session) -> None:
        try:
            self.socketio.close_room(session.room, namespace=self.namespace)
        except Exception as exc:
            logger.warning(f"[broadcast-error] close room={session.room}: {exc}")

    def _emit(self, event: str, payload, to: str) -> None:
        try:
            self.socketio.emit(event, payload, to=to, namespace=self.namespace)
        except Exception as exc:
            logger.warning(f"[broadcast-error] event={event} to={to}: {exc}")
