import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list, '*' allows any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    QUIZ_NAMESPACE = os.environ.get('QUIZ_NAMESPACE', '/')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Question timer bounds (seconds)
    DEFAULT_TIME_LIMIT_SEC = int(os.environ.get('DEFAULT_TIME_LIMIT_SEC', '30'))
    MIN_TIME_LIMIT_SEC = int(os.environ.get('MIN_TIME_LIMIT_SEC', '5'))
    MAX_TIME_LIMIT_SEC = int(os.environ.get('MAX_TIME_LIMIT_SEC', '120'))
    # Pause between results and the next question
    INTER_QUESTION_COUNTDOWN_SEC = int(os.environ.get('INTER_QUESTION_COUNTDOWN_SEC', '5'))
    # Finished sessions are dropped from memory after this delay
    FINISHED_SESSION_TTL_SEC = int(os.environ.get('FINISHED_SESSION_TTL_SEC', '60'))
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1.0'))
    # When False, countdowns are registered but never run in the background
    TIMER_AUTOSTART = True
    # Question generation (xAI chat completions)
    XAI_API_KEY = os.environ.get('XAI_API_KEY')
    XAI_API_URL = os.environ.get('XAI_API_URL', 'https://api.x.ai/v1/chat/completions')
    XAI_MODEL = os.environ.get('XAI_MODEL', 'grok-4-fast')
    XAI_TIMEOUT_SEC = int(os.environ.get('XAI_TIMEOUT_SEC', '60'))
