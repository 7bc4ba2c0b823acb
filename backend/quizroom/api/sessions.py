from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from quizroom.errors import QuizError, ValidationError
from quizroom.models import parse_question_set, sanitize_session_name
from quizroom.services.quiz.generator import generate_quiz

sessions = Blueprint('sessions', __name__)


def _engine():
    return current_app.extensions['quizroom']


@sessions.errorhandler(QuizError)
def handle_quiz_error(exc: QuizError):
    return jsonify({'error': exc.message}), exc.status_code


def _create_from_payload(default_name: str):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError('Questions array is required')
    questions = parse_question_set(data.get('questions'))
    name = sanitize_session_name(data.get('name'), default=default_name)
    return _engine().sessions.create(name, questions)


@sessions.route('/generate', methods=['POST'])
def generate():
    """
    Generates a quiz (name + questions) from a free-text prompt.
    """
    data = request.get_json(silent=True) or {}
    prompt = data.get('prompt') if isinstance(data, dict) else None
    if not isinstance(prompt, str) or not prompt.strip():
        return jsonify({'error': 'Prompt is required'}), 400
    name, questions = generate_quiz(prompt.strip(), current_app.config)
    return jsonify({'name': name, 'questions': [q.to_dict() for q in questions]})


@sessions.route('/session', methods=['POST'])
def create_session():
    session = _create_from_payload('Quiz')
    return jsonify({'sessionId': session.id}), 201


@sessions.route('/session/<string:session_id>', methods=['GET'])
def get_session(session_id):
    session = _engine().sessions.require(session_id)
    return jsonify(session.to_summary())


@sessions.route('/session/<string:session_id>/export', methods=['GET'])
def export_session(session_id):
    """
    Returns the session's quiz in the same shape /import accepts.
    """
    session = _engine().sessions.require(session_id)
    return jsonify({
        'name': session.name,
        'questions': [q.to_dict() for q in session.questions],
        'exportedAt': datetime.now(timezone.utc).isoformat(),
    })


@sessions.route('/import', methods=['POST'])
def import_quiz():
    session = _create_from_payload('Imported Quiz')
    return jsonify({'sessionId': session.id}), 201
