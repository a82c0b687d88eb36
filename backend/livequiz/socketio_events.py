import logging
from typing import Any, Dict

from flask import current_app, request
from flask_socketio import emit, join_room

from livequiz import REGISTRY_KEY, socketio
from livequiz.errors import QuestionSetError
from livequiz.services.quiz import Session, SessionRegistry
from livequiz.services.quiz.scheduler import make_timer_factory

logger = logging.getLogger(__name__)


def _registry() -> SessionRegistry:
    return current_app.extensions[REGISTRY_KEY]


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _session_factory(config, namespace: str):
    timer_factory = make_timer_factory(socketio)

    def _factory(code: str, host_sid: str) -> Session:
        def broadcast(event: str, payload) -> None:
            # Use socketio.emit since this may be called from a timer task
            socketio.emit(event, payload, to=code, namespace=namespace)

        return Session(
            code,
            host_sid,
            broadcast,
            timer_factory,
            default_duration_ms=int(config.get('DEFAULT_QUESTION_DURATION_MS', 15000)),
            advance_grace_ms=int(config.get('ADVANCE_GRACE_MS', 50)),
            max_name_length=int(config.get('MAX_NAME_LENGTH', 40)),
        )

    return _factory


def handle_connect(auth=None):
    emit('connected', {'sid': _get_sid()})


def handle_create_session(data=None):
    namespace = request.namespace
    session = _registry().create_session(_get_sid(), _session_factory(current_app.config, namespace))
    join_room(session.code)
    return {'code': session.code, 'sessionId': session.id}


def handle_start_session(data=None):
    data = _payload(data)
    session = _registry().get(data.get('code'))
    if not session or not session.is_host(_get_sid()):
        return {'ok': False, 'reason': 'not-host'}
    try:
        return session.start(data.get('questions'))
    except QuestionSetError as exc:
        logger.info(f"[start-rejected] session={session.code} error={exc}")
        return {'ok': False, 'reason': 'invalid-questions', 'message': str(exc)}


def handle_advance_question(data=None):
    data = _payload(data)
    session = _registry().get(data.get('code'))
    if not session or not session.is_host(_get_sid()):
        return {'ok': False, 'reason': 'not-host'}
    return session.advance()


def handle_join_session(data=None):
    data = _payload(data)
    session = _registry().get(data.get('code'))
    if not session:
        return {'ok': False, 'reason': 'not-found'}
    # Join the room first so the joiner also sees its own join broadcast
    join_room(session.code)
    participant = session.join(_get_sid(), data.get('name'))
    logger.info(f"[join] session={session.code} player={participant.name}")
    return {'ok': True, 'participantId': participant.id, 'code': session.code}


def handle_submit_answer(data=None):
    data = _payload(data)
    session = _registry().get(data.get('code'))
    if not session:
        return {'ok': False, 'reason': 'not-found'}
    result = session.submit_answer(_get_sid(), data.get('answer'))
    if result.ok:
        logger.info(
            f"[answer] session={session.code} sid={_get_sid()} correct={result.correct} "
            f"gained={result.gained} penalty={result.penalty}"
        )
    return result.to_reply()


def handle_disconnect(reason=None):
    """Host leaving ends and drops its session; a participant leaving only refreshes the leaderboard."""
    sid = _get_sid()
    registry = _registry()
    for session in registry.sessions():
        if session.is_host(sid):
            session.end('host-left')
            registry.remove(session.code)
            continue
        session.remove_participant(sid)


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register the quiz Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create-session', handle_create_session, namespace=namespace)
    socketio.on_event('start-session', handle_start_session, namespace=namespace)
    socketio.on_event('advance-question', handle_advance_question, namespace=namespace)
    socketio.on_event('join-session', handle_join_session, namespace=namespace)
    socketio.on_event('submit-answer', handle_submit_answer, namespace=namespace)
