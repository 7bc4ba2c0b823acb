"""Session lifecycle: lobby -> playing -> finished.

``QuizEngine`` is the single entry point for everything that happens to a
running quiz, whether triggered by a socket event or by a countdown. Every
public method runs while holding ``lock``, so session state is only ever
mutated by one caller at a time.
"""
import logging
import threading

from quizroom.config import Config
from quizroom.errors import AlreadyStarted, NoPlayers, Unauthorized
from quizroom.models import FINISHED, LOBBY, OPTION_COUNT, PLAYING, Session
from .broadcast import BroadcastGateway
from .connections import ConnectionRegistry
from .registry import SessionRegistry
from .scoring import compute_points, final_standings, podium, rank_results
from .timers import INTERMISSION, QUESTION, CountdownTask, TimerService

logger = logging.getLogger(__name__)


class QuizEngine:

    def __init__(self, sessions: SessionRegistry, connections: ConnectionRegistry,
                 timers: TimerService, gateway: BroadcastGateway, config=None):
        self.sessions = sessions
        self.connections = connections
        self.timers = timers
        self.gateway = gateway
        self.lock = timers.lock
        self.config = config if config is not None else {}

    @classmethod
    def build(cls, gateway: BroadcastGateway, config=None, spawn=None, sleep=None,
              autostart: bool = True) -> 'QuizEngine':
        """Wire up one engine with its own registries and timer service."""
        timers = TimerService(threading.RLock(), spawn=spawn, sleep=sleep, autostart=autostart)
        sessions = SessionRegistry(timers)
        connections = ConnectionRegistry(sessions, gateway)
        return cls(sessions, connections, timers, gateway, config)

    # ---- inbound events ----

    def host_join(self, sid: str, session_id) -> Session:
        with self.lock:
            return self.connections.bind_host(session_id, sid)

    def player_join(self, sid: str, session_id, player_name):
        with self.lock:
            return self.connections.join_player(session_id, sid, player_name)

    def start(self, sid: str, data=None) -> Session:
        with self.lock:
            conn, session = self.connections.session_for(sid)
            if session is None or not conn.is_host or session.host_sid != sid:
                raise Unauthorized()
            if session.status != LOBBY:
                raise AlreadyStarted()
            if not session.players:
                raise NoPlayers()

            session.time_limit = self.clamp_time_limit((data or {}).get('timeLimit') if isinstance(data, dict) else None)
            for player in session.players.values():
                player.reset_answer()
            session.status = PLAYING
            session.current_question_index = 0
            logger.info(f"[quiz-start] session={session.id} players={len(session.players)} time_limit={session.time_limit}s")
            self._send_question(session)
            return session

    def answer(self, sid: str, option_index) -> bool:
        """Record a player's choice. Returns False when the answer was ignored."""
        with self.lock:
            conn, session = self.connections.session_for(sid)
            if session is None or session.status != PLAYING:
                return False
            player = session.players.get(sid)
            if player is None:
                return False
            task = self.timers.active(session.id)
            if task is None or task.kind != QUESTION:
                return False
            if not isinstance(option_index, int) or isinstance(option_index, bool):
                return False
            if not 0 <= option_index < OPTION_COUNT:
                return False

            # speed is fixed by the first submission; the choice may still change
            if player.current_answer is None:
                player.answer_time = session.time_left
            player.current_answer = option_index
            logger.info(f"[answer] session={session.id} name={player.name} option={option_index} time_left={player.answer_time}")

            self.gateway.to_room(session, 'host:answerCount', {
                'answered': session.answered_count(),
                'total': len(session.players),
            })
            self.gateway.to_host(session, 'host:answerStats', {'stats': session.answer_stats()})
            return True

    def skip(self, sid: str) -> bool:
        with self.lock:
            conn, session = self.connections.session_for(sid)
            if session is None or not conn.is_host or session.host_sid != sid:
                raise Unauthorized()
            if session.status != PLAYING:
                return False
            task = self.timers.active(session.id)
            if task is None or task.kind != QUESTION:
                return False
            self.timers.cancel(session.id)
            logger.info(f"[question-skip] session={session.id} question={session.current_question_index + 1}")
            self._end_question(session)
            return True

    def disconnect(self, sid: str) -> None:
        with self.lock:
            self.connections.unbind(sid)

    # ---- lifecycle ----

    def clamp_time_limit(self, raw) -> int:
        default = int(self._setting('DEFAULT_TIME_LIMIT_SEC'))
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not raw:
            value = default
        else:
            value = int(raw)
        low = int(self._setting('MIN_TIME_LIMIT_SEC'))
        high = int(self._setting('MAX_TIME_LIMIT_SEC'))
        return min(max(value, low), high)

    def _setting(self, key: str):
        """App config value, falling back to the ``Config`` class default."""
        return self.config.get(key, getattr(Config, key))

    def _is_live(self, session: Session) -> bool:
        return self.sessions.get(session.id) is session

    def _send_question(self, session: Session) -> None:
        question = session.current_question
        for player in session.players.values():
            player.reset_answer()

        self.gateway.to_room(session, 'quiz:question', {
            'questionNumber': session.current_question_index + 1,
            'totalQuestions': len(session.questions),
            'question': question.text,
            'options': list(question.options),
            'timeLimit': session.time_limit,
            'totalPlayers': len(session.players),
        })
        self.gateway.to_host(session, 'host:correctAnswer', {'correctIndex': question.correct_index})

        session.time_left = session.time_limit

        def _tick(remaining: int) -> None:
            if not self._is_live(session):
                return
            session.time_left = remaining
            self.gateway.to_room(session, 'quiz:timer', {'timeLeft': remaining})

        def _expire() -> None:
            if self._is_live(session) and session.status == PLAYING:
                self._end_question(session)

        self.timers.start(session.id, CountdownTask(
            QUESTION, ticks=session.time_limit, interval=self._setting('TICK_INTERVAL_SEC'),
            on_tick=_tick, on_expire=_expire,
        ))

    def _end_question(self, session: Session) -> None:
        question = session.current_question
        results = []
        for player in session.players.values():
            is_correct = player.current_answer == question.correct_index
            points = compute_points(is_correct, player.answer_time, session.time_limit)
            player.score += points
            results.append({
                'name': player.name,
                'answer': player.current_answer,
                'isCorrect': is_correct,
                'pointsEarned': points,
                'totalScore': player.score,
                'answerTime': player.answer_time,
            })

        self.gateway.to_room(session, 'quiz:results', {
            'correctIndex': question.correct_index,
            'correctAnswer': question.correct_option,
            'playerResults': rank_results(results),
        })
        logger.info(f"[question-end] session={session.id} question={session.current_question_index + 1}")

        session.current_question_index += 1
        self._start_intermission(session)

    def _start_intermission(self, session: Session) -> None:
        is_last = session.is_last_question
        seconds = int(self._setting('INTER_QUESTION_COUNTDOWN_SEC'))

        def _tick(remaining: int) -> None:
            if self._is_live(session):
                self.gateway.to_room(session, 'quiz:countdown', {'timeLeft': remaining, 'isLastQuestion': is_last})

        def _expire() -> None:
            if not self._is_live(session) or session.status != PLAYING:
                return
            if is_last:
                self._finish(session)
            else:
                self._send_question(session)

        _tick(seconds)
        task = CountdownTask(INTERMISSION, ticks=seconds, interval=self._setting('TICK_INTERVAL_SEC'),
                             on_tick=_tick, on_expire=_expire)
        self.timers.start(session.id, task)

    def _finish(self, session: Session) -> None:
        session.status = FINISHED
        standings = final_standings(session.players.values())
        self.gateway.to_room(session, 'quiz:finished', {
            'podium': podium(standings),
            'allResults': standings,
        })
        logger.info(f"[quiz-finished] session={session.id} players={len(standings)}")
        self.sessions.schedule_removal(session.id, self._setting('FINISHED_SESSION_TTL_SEC'),
                                      on_remove=self.connections.release)
