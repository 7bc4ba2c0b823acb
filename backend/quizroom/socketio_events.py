import functools

from flask import current_app, request
from flask_socketio import emit

from quizroom import socketio
from quizroom.errors import QuizError
from quizroom.services.quiz import QuizEngine


def _engine() -> QuizEngine:
    return current_app.extensions['quizroom']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _reports_errors(handler):
    """Send quiz errors back to the triggering connection only."""

    @functools.wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except QuizError as exc:
            emit('error', {'message': exc.message})
        except Exception:
            current_app.logger.exception(f"[socket-error] handler={handler.__name__} sid={_get_sid()}")
            emit('error', {'message': 'Internal server error'})
    return wrapper


def handle_disconnect(reason=None):
    _engine().disconnect(_get_sid())


@_reports_errors
def handle_host_join(session_id=None):
    _engine().host_join(_get_sid(), session_id)


@_reports_errors
def handle_player_join(data=None):
    data = data if isinstance(data, dict) else {}
    _engine().player_join(_get_sid(), data.get('sessionId'), data.get('playerName'))


@_reports_errors
def handle_host_start(data=None):
    _engine().start(_get_sid(), data)


@_reports_errors
def handle_player_answer(option_index=None):
    _engine().answer(_get_sid(), option_index)


@_reports_errors
def handle_host_skip(data=None):
    _engine().skip(_get_sid())


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the quiz protocol on ``namespace``."""
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('host:join', handle_host_join, namespace=namespace)
    socketio.on_event('player:join', handle_player_join, namespace=namespace)
    socketio.on_event('host:start', handle_host_start, namespace=namespace)
    socketio.on_event('player:answer', handle_player_answer, namespace=namespace)
    socketio.on_event('host:skip', handle_host_skip, namespace=namespace)
