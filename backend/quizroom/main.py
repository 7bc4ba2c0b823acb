from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    engine = current_app.extensions['quizroom']
    return jsonify({'message': 'Quiz server is running', 'sessions': len(engine.sessions)})
