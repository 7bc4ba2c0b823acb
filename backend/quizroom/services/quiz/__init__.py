"""Quiz domain services: scoring, countdowns and the session lifecycle.

This package contains the transport-free game logic used by the socket
handlers and HTTP routes. The only transport it knows about is the
``BroadcastGateway`` it is handed.
"""

from .engine import QuizEngine

__all__ = ['QuizEngine']
