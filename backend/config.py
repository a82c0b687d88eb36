import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list, '*' allows any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    # Question timing (milliseconds)
    DEFAULT_QUESTION_DURATION_MS = int(os.environ.get('DEFAULT_QUESTION_DURATION_MS', '15000'))
    # Auto-advance fires this long after the deadline so late-edge answers still score
    ADVANCE_GRACE_MS = int(os.environ.get('ADVANCE_GRACE_MS', '50'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '40'))
    # Idle session reaping (seconds). 0 disables.
    SESSION_IDLE_TIMEOUT_SEC = int(os.environ.get('SESSION_IDLE_TIMEOUT_SEC', '7200'))
    IDLE_SWEEP_INTERVAL_SEC = int(os.environ.get('IDLE_SWEEP_INTERVAL_SEC', '60'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or ('DEBUG' if os.environ.get('FLASK_DEBUG') else 'INFO')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
