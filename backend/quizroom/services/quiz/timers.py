"""Per-session countdowns.

A session owns at most one running countdown: the question timer, the
pause between questions, or the post-finish cleanup delay. Starting a new
countdown for a session cancels whatever was running for it.
"""
import logging
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

QUESTION = 'question'
INTERMISSION = 'intermission'
CLEANUP = 'cleanup'


class CountdownTask:
    """A cancellable countdown of ``ticks`` steps, ``interval`` seconds apart.

    ``on_tick(remaining)`` runs after each decrement; ``on_expire()`` runs once
    when ``remaining`` reaches zero. Once cancelled, neither callback runs
    again.
    """

    def __init__(self, kind: str, ticks: int, interval: float = 1.0,
                 on_tick: Optional[Callable[[int], None]] = None,
                 on_expire: Optional[Callable[[], None]] = None):
        self.kind = kind
        self.remaining = int(ticks)
        self.interval = interval
        self.on_tick = on_tick
        self.on_expire = on_expire
        self.cancelled = False
        self.finished = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.finished)

    def cancel(self) -> None:
        self.cancelled = True

    def tick(self) -> bool:
        """Advance by one step. Returns True while further ticks are due."""
        if not self.active:
            return False
        self.remaining -= 1
        if self.on_tick:
            self.on_tick(self.remaining)
        if self.cancelled:
            return False
        if self.remaining <= 0:
            self.finished = True
            if self.on_expire:
                self.on_expire()
            return False
        return True

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'finished' if self.finished else 'active'
        return f"<CountdownTask {self.kind} remaining={self.remaining} {state}>"


class TimerService:
    """Owns the single countdown slot of every session.

    All slot mutations and every tick happen while holding ``lock``, the
    same lock the socket handlers hold, so a tick never interleaves with an
    inbound event.
    """

    def __init__(self, lock, spawn: Optional[Callable] = None, sleep: Optional[Callable] = None,
                 autostart: bool = True):
        self.lock = lock
        self._spawn = spawn
        self._sleep = sleep or time.sleep
        self.autostart = autostart
        self._tasks: Dict[str, CountdownTask] = {}

    def start(self, session_id: str, task: CountdownTask) -> CountdownTask:
        with self.lock:
            self.cancel(session_id)
            self._tasks[session_id] = task
            logger.info(f"[timer-set] session={session_id} kind={task.kind} ticks={task.remaining} interval={task.interval}s")
        if self.autostart and self._spawn is not None:
            self._spawn(self._run, session_id, task)
        return task

    def cancel(self, session_id: str) -> bool:
        with self.lock:
            task = self._tasks.pop(session_id, None)
            if task is None or not task.active:
                return False
            task.cancel()
            logger.info(f"[timer-cancel] session={session_id} kind={task.kind} remaining={task.remaining}")
            return True

    def active(self, session_id: str) -> Optional[CountdownTask]:
        with self.lock:
            task = self._tasks.get(session_id)
            if task is not None and task.active:
                return task
            return None

    def advance(self, session_id: str, ticks: int = 1) -> None:
        """Run up to ``ticks`` steps of the session's current countdown inline."""
        for _ in range(ticks):
            with self.lock:
                task = self.active(session_id)
                if task is None:
                    return
                self._step(session_id, task)

    def _step(self, session_id: str, task: CountdownTask) -> bool:
        more = task.tick()
        if not more:
            if task.finished:
                logger.info(f"[timer-fire] session={session_id} kind={task.kind}")
            # on_expire may already have installed the next countdown
            if self._tasks.get(session_id) is task:
                del self._tasks[session_id]
        return more

    def _run(self, session_id: str, task: CountdownTask) -> None:
        while True:
            self._sleep(task.interval)
            with self.lock:
                if not task.active:
                    return
                try:
                    if not self._step(session_id, task):
                        return
                except Exception:
                    logger.exception(f"[timer-error] session={session_id} kind={task.kind}")
                    task.cancel()
                    if self._tasks.get(session_id) is task:
                        del self._tasks[session_id]
                    return
