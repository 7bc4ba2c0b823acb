import logging
import time
from typing import Callable, Dict, Iterable, Optional

from quizroom.errors import NotFound
from quizroom.models import Question, Session, generate_session_id
from .timers import CLEANUP, CountdownTask, TimerService

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-memory session id -> Session mapping.

    Everything is lost on restart.
    """

    def __init__(self, timers: TimerService):
        self.timers = timers
        self._sessions: Dict[str, Session] = {}

    def create(self, name: str, questions: Iterable[Question]) -> Session:
        with self.timers.lock:
            session_id = generate_session_id()
            while session_id in self._sessions:
                session_id = generate_session_id()
            session = Session(id=session_id, name=name, questions=tuple(questions))
            self._sessions[session_id] = session
        logger.info(f"[session-created] session={session_id} questions={len(session.questions)}")
        return session

    def get(self, session_id) -> Optional[Session]:
        if not isinstance(session_id, str):
            return None
        return self._sessions.get(session_id)

    def require(self, session_id) -> Session:
        session = self.get(session_id)
        if session is None:
            raise NotFound()
        return session

    def delete(self, session_id: str) -> Optional[Session]:
        with self.timers.lock:
            self.timers.cancel(session_id)
            return self._sessions.pop(session_id, None)

    def schedule_removal(self, session_id: str, delay: float,
                         on_remove: Optional[Callable[[Session], None]] = None) -> CountdownTask:
        """Drop the session after ``delay`` seconds unless it is already gone.

        ``on_remove(session)`` runs after the session has been dropped.
        """

        def _expire():
            session = self._sessions.pop(session_id, None)
            if session is not None:
                age = int(time.time() - session.created_at)
                logger.info(f"[session-cleanup] session={session_id} age={age}s")
                if on_remove is not None:
                    on_remove(session)

        task = CountdownTask(CLEANUP, ticks=1, interval=delay, on_expire=_expire)
        return self.timers.start(session_id, task)

    def __len__(self) -> int:
        return len(self._sessions)
