import threading

from quizroom.services.quiz.timers import CLEANUP, INTERMISSION, QUESTION, CountdownTask, TimerService


def _recording_task(kind=QUESTION, ticks=3):
    log = {'ticks': [], 'expired': 0}

    def on_tick(remaining):
        log['ticks'].append(remaining)

    def on_expire():
        log['expired'] += 1

    return CountdownTask(kind, ticks=ticks, on_tick=on_tick, on_expire=on_expire), log


def test_countdown_ticks_down_and_expires_once():
    task, log = _recording_task(ticks=3)
    assert task.tick() is True
    assert task.tick() is True
    assert task.tick() is False
    assert log == {'ticks': [2, 1, 0], 'expired': 1}
    assert task.finished and not task.active
    # a finished task never fires again
    assert task.tick() is False
    assert log['expired'] == 1


def test_cancelled_countdown_does_nothing():
    task, log = _recording_task(ticks=2)
    task.tick()
    task.cancel()
    assert task.tick() is False
    assert log == {'ticks': [1], 'expired': 0}


def test_starting_a_task_cancels_the_previous_one():
    timers = TimerService(threading.RLock(), autostart=False)
    first, first_log = _recording_task()
    second, _ = _recording_task(kind=INTERMISSION)
    timers.start('s1', first)
    timers.start('s1', second)
    assert first.cancelled
    assert timers.active('s1') is second
    timers.advance('s1', 5)
    assert first_log == {'ticks': [], 'expired': 0}


def test_slots_are_per_session():
    timers = TimerService(threading.RLock(), autostart=False)
    a, _ = _recording_task()
    b, _ = _recording_task()
    timers.start('s1', a)
    timers.start('s2', b)
    assert timers.cancel('s1') is True
    assert timers.active('s1') is None
    assert timers.active('s2') is b
    assert timers.cancel('s1') is False


def test_expired_task_leaves_the_slot():
    timers = TimerService(threading.RLock(), autostart=False)
    task, log = _recording_task(ticks=1)
    timers.start('s1', task)
    timers.advance('s1')
    assert log['expired'] == 1
    assert timers.active('s1') is None


def test_follow_up_task_started_on_expiry_is_kept():
    timers = TimerService(threading.RLock(), autostart=False)
    follow_up = CountdownTask(CLEANUP, ticks=1)
    task = CountdownTask(QUESTION, ticks=1, on_expire=lambda: timers.start('s1', follow_up))
    timers.start('s1', task)
    timers.advance('s1')
    assert timers.active('s1') is follow_up


def test_background_runner_sleeps_between_ticks():
    sleeps = []
    timers = TimerService(threading.RLock(), spawn=lambda fn, *args: fn(*args), sleep=sleeps.append)
    task, log = _recording_task(ticks=3)
    task.interval = 0.5
    timers.start('s1', task)
    assert sleeps == [0.5, 0.5, 0.5]
    assert log == {'ticks': [2, 1, 0], 'expired': 1}


def test_cancel_before_pending_tick_wins_the_race():
    pending = []
    timers = TimerService(threading.RLock(), spawn=lambda fn, *args: pending.append((fn, args)),
                          sleep=lambda _: None)
    task, log = _recording_task(ticks=1)
    timers.start('s1', task)
    timers.cancel('s1')
    # the runner wakes up after the cancel and must not fire
    fn, args = pending[0]
    fn(*args)
    assert log == {'ticks': [], 'expired': 0}


def test_runner_survives_a_failing_callback():
    def explode(remaining):
        raise RuntimeError('boom')

    timers = TimerService(threading.RLock(), spawn=lambda fn, *args: fn(*args), sleep=lambda _: None)
    task = CountdownTask(QUESTION, ticks=3, on_tick=explode)
    timers.start('s1', task)
    assert task.cancelled
    assert timers.active('s1') is None
