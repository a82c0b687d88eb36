import json

from livequiz import socketio


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'running' in res.get_json()['message']


def test_health_counts_active_sessions(flask_app, client):
    assert client.get('/health').get_json() == {'status': 'ok', 'sessions': 0}
    host = socketio.test_client(flask_app, namespace='/ws')
    host.emit('create-session', {}, namespace='/ws', callback=True)
    assert client.get('/health').get_json()['sessions'] == 1
    host.disconnect(namespace='/ws')
    assert client.get('/health').get_json()['sessions'] == 0


def test_check_questions_command(flask_app, tmp_path):
    path = tmp_path / 'quiz.json'
    path.write_text(json.dumps({'questions': [
        {'prompt': 'A?', 'options': ['a', 'b'], 'answer': 'a'},
        {'prompt': 'B?', 'options': ['a', 'b'], 'answer': 'b', 'duration': 5000},
    ]}))
    result = flask_app.test_cli_runner().invoke(args=['check-questions', str(path)])
    assert result.exit_code == 0
    assert '2 questions, 20s of answering time' in result.output


def test_check_questions_command_rejects_bad_shape(flask_app, tmp_path):
    path = tmp_path / 'quiz.json'
    path.write_text(json.dumps([{'prompt': 'missing answer'}]))
    result = flask_app.test_cli_runner().invoke(args=['check-questions', str(path)])
    assert result.exit_code != 0
    assert 'question 0' in result.output


def test_check_questions_command_rejects_bad_json(flask_app, tmp_path):
    path = tmp_path / 'quiz.json'
    path.write_text('{not json')
    result = flask_app.test_cli_runner().invoke(args=['check-questions', str(path)])
    assert result.exit_code != 0
    assert 'not valid JSON' in result.output
