import json

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from quizroom.config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(raw: str):
    origins = [o.strip() for o in (raw or '').split(',') if o.strip()]
    if not origins or '*' in origins:
        return '*'
    return origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    # Service loggers (quizroom.services.*) are children of the app logger
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Composition root: one engine (and one session registry) per app
    from quizroom.services.quiz import QuizEngine
    from quizroom.services.quiz.broadcast import BroadcastGateway
    namespace = flask_app.config.get('QUIZ_NAMESPACE', '/')
    engine = QuizEngine.build(
        BroadcastGateway(socketio, namespace=namespace),
        config=flask_app.config,
        spawn=socketio.start_background_task,
        sleep=socketio.sleep,
        autostart=flask_app.config.get('TIMER_AUTOSTART', True),
    )
    flask_app.extensions['quizroom'] = engine

    from quizroom.main import main
    flask_app.register_blueprint(main)

    from quizroom.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api')

    from quizroom.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('generate-quiz')
    @click.argument('prompt')
    @click.option('-o', '--output', type=click.File('w', encoding='utf-8'), default='-',
                  help='Where to write the quiz JSON (default: stdout).')
    def generate_quiz_command(prompt, output):
        """Generates a quiz from PROMPT in the format POST /api/import accepts."""
        from quizroom.errors import QuizError
        from quizroom.services.quiz.generator import generate_quiz
        try:
            name, questions = generate_quiz(prompt, flask_app.config)
        except QuizError as exc:
            raise click.ClickException(exc.message)
        json.dump({'name': name, 'questions': [q.to_dict() for q in questions]},
                  output, ensure_ascii=False, indent=2)
        output.write('\n')

    flask_app.cli.add_command(generate_quiz_command)

    return flask_app
