import os
import sys
import pytest

# Ensure the project root (containing the `trivia_arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from trivia_arena import create_app, db


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORRECT_ANSWER_POINTS = 10
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 50
    DEFAULT_DISPLAY_NAME = 'Player'
    IDENTITY_HEADER = 'X-User-Id'
    IDENTITY_EMAIL_HEADER = 'X-User-Email'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import trivia_arena.models  # noqa: F401
        db.create_all()
    # No context is left open: each test request must get its own, or the
    # identity loaded for the first request leaks into the next ones
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def as_user(user_id, email=None):
    headers = {'X-User-Id': user_id}
    if email:
        headers['X-User-Email'] = email
    return headers


@pytest.fixture()
def room_with_questions(client):
    """A room hosted by `host` with two questions (correct keys B and C)."""
    room = client.post('/api/rooms', json={'name': 'Friday Fun Quiz'}, headers=as_user('host')).get_json()['data']['room']
    q1 = client.post(
        f"/api/rooms/{room['id']}/questions",
        json={'order_index': 0, 'question_text': 'Capital of France?', 'option_a': 'Berlin', 'option_b': 'Paris', 'correct_option_key': 'B'},
        headers=as_user('host'),
    ).get_json()['data']['question']
    q2 = client.post(
        f"/api/rooms/{room['id']}/questions",
        json={'order_index': 1, 'question_text': 'Legs on a spider?', 'option_c': '8', 'correct_option_key': 'C'},
        headers=as_user('host'),
    ).get_json()['data']['question']
    return room, q1, q2
