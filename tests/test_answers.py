import pytest
from conftest import as_user
from trivia_arena import db
from trivia_arena.errors import ActionError
from trivia_arena.models import TriviaAnswer, TriviaPlayer, TriviaQuestion, TriviaRoom
from trivia_arena.services.trivia import scoring
from trivia_arena.services.trivia.scoring import grade_answer, record_answer


def _join(client, room, user_id, name):
    return client.post(f"/api/rooms/{room['id']}/join", json={'display_name': name}, headers=as_user(user_id)).get_json()['data']['player']


def _answer(client, user_id, question, player, key=None):
    body = {'question_id': question['id'], 'player_id': player['id']}
    if key is not None:
        body['selected_option_key'] = key
    return client.post('/api/answers', json=body, headers=as_user(user_id))


def test_correct_answer_awards_points(client, room_with_questions):
    room, q1, _ = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    res = _answer(client, 'alice', q1, alice, 'B')
    assert res.status_code == 200
    data = res.get_json()['data']
    assert data['answer']['is_correct'] is True
    assert data['answer']['score_awarded'] == 10
    assert data['answer']['selected_option_key'] == 'B'
    assert data['player']['total_score'] == 10


def test_wrong_and_missing_answers_award_nothing(client, room_with_questions):
    room, q1, q2 = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    wrong = _answer(client, 'alice', q1, alice, 'A').get_json()['data']
    assert wrong['answer']['is_correct'] is False
    assert wrong['answer']['score_awarded'] == 0
    timeout = _answer(client, 'alice', q2, alice).get_json()['data']
    assert timeout['answer']['selected_option_key'] is None
    assert timeout['answer']['is_correct'] is False
    assert timeout['player']['total_score'] == 0


def test_rerecording_reconciles_total(client, room_with_questions):
    room, q1, q2 = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')

    first = _answer(client, 'alice', q1, alice, 'B').get_json()['data']
    assert first['player']['total_score'] == 10
    # Same answer again must not double count
    again = _answer(client, 'alice', q1, alice, 'B').get_json()['data']
    assert again['answer']['id'] == first['answer']['id']
    assert again['player']['total_score'] == 10
    # Changing to a wrong answer removes the points
    changed = _answer(client, 'alice', q1, alice, 'D').get_json()['data']
    assert changed['answer']['id'] == first['answer']['id']
    assert changed['player']['total_score'] == 0
    # Scores from other questions are kept
    _answer(client, 'alice', q2, alice, 'C')
    back = _answer(client, 'alice', q1, alice, 'B').get_json()['data']
    assert back['player']['total_score'] == 20


def test_host_may_record_for_player(client, room_with_questions):
    room, q1, _ = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    res = _answer(client, 'host', q1, alice, 'B')
    assert res.status_code == 200
    assert res.get_json()['data']['player']['total_score'] == 10


def test_other_player_may_not_record(client, room_with_questions):
    room, q1, _ = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    _join(client, room, 'bob', 'Bob')
    res = _answer(client, 'bob', q1, alice, 'B')
    assert res.status_code == 403
    assert res.get_json()['error']['message'] == 'You do not have permission to record this answer.'


def test_player_and_question_in_different_rooms(client, room_with_questions):
    room, q1, _ = room_with_questions
    other = client.post('/api/rooms', json={'name': 'Other'}, headers=as_user('host')).get_json()['data']['room']
    alice = _join(client, other, 'alice', 'Alice')
    res = _answer(client, 'alice', q1, alice, 'B')
    assert res.status_code == 400
    assert res.get_json()['error']['message'] == 'Player and question are in different rooms.'


def test_missing_question_and_player(client, room_with_questions):
    room, q1, _ = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    res = _answer(client, 'alice', {'id': 'missing'}, alice, 'B')
    assert res.status_code == 404
    assert res.get_json()['error']['message'] == 'Question not found.'
    res = _answer(client, 'alice', q1, {'id': 'missing'}, 'B')
    assert res.status_code == 404
    assert res.get_json()['error']['message'] == 'Player not found.'


def test_answer_validation(client, room_with_questions):
    room, q1, _ = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    assert _answer(client, 'alice', q1, alice, 'E').status_code == 400
    res = client.post('/api/answers', json={'player_id': alice['id']}, headers=as_user('alice'))
    assert res.status_code == 400
    assert 'question_id' in res.get_json()['error']['fields']
    assert client.post('/api/answers', json={'question_id': q1['id'], 'player_id': alice['id']}).status_code == 401


def test_grade_answer_requires_both_keys():
    question = TriviaQuestion(correct_option_key='A')
    assert grade_answer(question, 'A') is True
    assert grade_answer(question, 'B') is False
    assert grade_answer(question, None) is False
    assert grade_answer(TriviaQuestion(correct_option_key=None), 'A') is False


def _seed(points_key='B'):
    room = TriviaRoom(host_user_id='host', name='Service Quiz')
    db.session.add(room)
    db.session.flush()
    question = TriviaQuestion(room_id=room.id, order_index=0, question_text='Q?', correct_option_key=points_key)
    guest = TriviaPlayer(room_id=room.id, user_id=None, display_name='Guest')
    db.session.add_all([question, guest])
    db.session.commit()
    return room.id, question.id, guest.id


def test_record_answer_service_keeps_one_row_per_player(flask_app):
    with flask_app.app_context():
        _, question_id, guest_id = _seed()
        record_answer(question_id, guest_id, 'B', 'host')
        answer, player = record_answer(question_id, guest_id, 'A', 'host')
        assert TriviaAnswer.query.filter_by(question_id=question_id, player_id=guest_id).count() == 1
        assert answer.is_correct is False
        assert player.total_score == 0


def test_record_answer_uses_configured_points(flask_app):
    flask_app.config['CORRECT_ANSWER_POINTS'] = 25
    with flask_app.app_context():
        _, question_id, guest_id = _seed()
        answer, player = record_answer(question_id, guest_id, 'B', 'host')
        assert answer.score_awarded == 25
        assert player.total_score == 25


def test_guest_player_cannot_be_claimed_by_anonymous_user_id(flask_app):
    with flask_app.app_context():
        _, question_id, guest_id = _seed()
        with pytest.raises(ActionError) as excinfo:
            record_answer(question_id, guest_id, 'B', 'somebody')
        assert excinfo.value.code == 'FORBIDDEN'
        assert excinfo.value.http_status == 403


def test_record_answer_for_missing_room(flask_app):
    with flask_app.app_context():
        # SQLite does not enforce the foreign keys, so orphans can be stored
        question = TriviaQuestion(room_id='gone', order_index=0, question_text='Q?', correct_option_key='A')
        player = TriviaPlayer(room_id='gone', user_id='alice', display_name='Alice')
        db.session.add_all([question, player])
        db.session.commit()
        with pytest.raises(ActionError) as excinfo:
            record_answer(question.id, player.id, 'A', 'alice')
        assert excinfo.value.code == 'NOT_FOUND'
        assert excinfo.value.message == 'Room not found.'


def test_concurrent_duplicate_answer_is_a_conflict(client, room_with_questions, monkeypatch):
    room, q1, _ = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    assert _answer(client, 'alice', q1, alice, 'B').status_code == 200

    # Simulate a second request that looked up the answer before the first one stored it
    monkeypatch.setattr(scoring, 'find_answer', lambda question_id, player_id: None)
    res = _answer(client, 'alice', q1, alice, 'B')
    assert res.status_code == 409
    assert res.get_json()['error']['code'] == 'CONFLICT'

    state = client.get(f"/api/rooms/{room['id']}/state", headers=as_user('alice')).get_json()['data']
    assert state['players'][0]['total_score'] == 10


def test_answer_response_envelope_and_utc_timestamps(client, room_with_questions):
    room, q1, _ = room_with_questions
    alice = _join(client, room, 'alice', 'Alice')
    body = _answer(client, 'alice', q1, alice, 'B').get_json()
    assert body['success'] is True
    assert body['data']['answer']['answered_at'].endswith('+00:00')
    assert body['data']['player']['joined_at'].endswith('+00:00')
