import json
import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

REGISTRY_KEY = 'livequiz_registry'


def _parse_origins(value):
    if not value or value.strip() == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    level = str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper()
    flask_app.logger.setLevel(getattr(logging, level, logging.INFO))

    allowed_origins = _parse_origins(flask_app.config.get('CORS_ORIGINS', '*'))
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Sessions live in memory for the lifetime of this app
    from livequiz.services.quiz import SessionRegistry
    registry = SessionRegistry()
    flask_app.extensions[REGISTRY_KEY] = registry

    from livequiz.main import main
    flask_app.register_blueprint(main)

    # Importing here ensures the handlers bind to the initialized socketio instance
    from livequiz.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'))

    if not flask_app.config.get('TESTING'):
        from livequiz.services.quiz.scheduler import start_idle_sweeper
        start_idle_sweeper(
            socketio,
            registry,
            int(flask_app.config.get('SESSION_IDLE_TIMEOUT_SEC', 0)),
            int(flask_app.config.get('IDLE_SWEEP_INTERVAL_SEC', 60)),
        )

    @click.command('check-questions')
    @click.argument('path', type=click.Path(exists=True, dir_okay=False))
    def check_questions_command(path):
        """Validates the shape of a JSON question set before a quiz night."""
        from livequiz.errors import QuestionSetError
        from livequiz.models import parse_questions

        with open(path, encoding='utf-8') as fh:
            try:
                raw = json.load(fh)
            except ValueError as exc:
                raise click.ClickException(f'{path} is not valid JSON: {exc}')
        if isinstance(raw, dict):
            raw = raw.get('questions')
        default_ms = int(flask_app.config.get('DEFAULT_QUESTION_DURATION_MS', 15000))
        try:
            questions = parse_questions(raw, default_ms)
        except QuestionSetError as exc:
            raise click.ClickException(str(exc))
        total_sec = sum(q.duration_ms for q in questions) / 1000.0
        click.echo(f'{len(questions)} questions, {total_sec:g}s of answering time')

    flask_app.cli.add_command(check_questions_command)

    return flask_app
