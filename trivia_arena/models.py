from trivia_arena import db
from datetime import datetime, timezone
import uuid

ROOM_STATUSES = ('lobby', 'in-progress', 'completed')
OPTION_KEYS = ('A', 'B', 'C', 'D')


def new_id():
    return str(uuid.uuid4())


def utc_now():
    return datetime.now(timezone.utc)


def _iso(value):
    if not value:
        return None
    # SQLite hands back naive values; they are always UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class TriviaRoom(db.Model):
    __tablename__ = 'trivia_room'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    host_user_id = db.Column(db.String(255), nullable=False, index=True)  # room owner
    name = db.Column(db.String(255), nullable=False)
    access_code = db.Column(db.String(64), nullable=True)  # join code if used
    status = db.Column(db.String(32), nullable=True, default='lobby')  # lobby, in-progress, completed
    max_players = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)

    players = db.relationship('TriviaPlayer', back_populates='room', lazy='dynamic')
    questions = db.relationship('TriviaQuestion', back_populates='room', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'host_user_id': self.host_user_id,
            'name': self.name,
            'access_code': self.access_code,
            'status': self.status,
            'max_players': self.max_players,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class TriviaPlayer(db.Model):
    __tablename__ = 'trivia_player'
    __table_args__ = (db.UniqueConstraint('room_id', 'user_id', name='uq_trivia_player_room_user'),)
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    room_id = db.Column(db.String(36), db.ForeignKey('trivia_room.id'), nullable=False, index=True)
    user_id = db.Column(db.String(255), nullable=True)  # null if guest
    display_name = db.Column(db.String(120), nullable=False)
    total_score = db.Column(db.Integer, nullable=False, default=0)
    joined_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)
    left_at = db.Column(db.DateTime(timezone=True), nullable=True)

    room = db.relationship('TriviaRoom', back_populates='players')
    answers = db.relationship('TriviaAnswer', back_populates='player', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'user_id': self.user_id,
            'display_name': self.display_name,
            'total_score': self.total_score,
            'joined_at': _iso(self.joined_at),
            'left_at': _iso(self.left_at),
        }


class TriviaQuestion(db.Model):
    __tablename__ = 'trivia_question'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    room_id = db.Column(db.String(36), db.ForeignKey('trivia_room.id'), nullable=False, index=True)
    order_index = db.Column(db.Integer, nullable=False)  # question sequence in room
    question_text = db.Column(db.Text, nullable=False)
    option_a = db.Column(db.Text, nullable=True)
    option_b = db.Column(db.Text, nullable=True)
    option_c = db.Column(db.Text, nullable=True)
    option_d = db.Column(db.Text, nullable=True)
    correct_option_key = db.Column(db.String(1), nullable=True)  # A, B, C, D
    time_limit_seconds = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)

    room = db.relationship('TriviaRoom', back_populates='questions')
    answers = db.relationship('TriviaAnswer', back_populates='question', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'room_id': self.room_id,
            'order_index': self.order_index,
            'question_text': self.question_text,
            'option_a': self.option_a,
            'option_b': self.option_b,
            'option_c': self.option_c,
            'option_d': self.option_d,
            'correct_option_key': self.correct_option_key,
            'time_limit_seconds': self.time_limit_seconds,
            'created_at': _iso(self.created_at),
        }


class TriviaAnswer(db.Model):
    __tablename__ = 'trivia_answer'
    __table_args__ = (db.UniqueConstraint('question_id', 'player_id', name='uq_trivia_answer_question_player'),)
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    question_id = db.Column(db.String(36), db.ForeignKey('trivia_question.id'), nullable=False, index=True)
    player_id = db.Column(db.String(36), db.ForeignKey('trivia_player.id'), nullable=False, index=True)
    selected_option_key = db.Column(db.String(1), nullable=True)  # null if timeout
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    answered_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)
    score_awarded = db.Column(db.Integer, nullable=False, default=0)

    question = db.relationship('TriviaQuestion', back_populates='answers')
    player = db.relationship('TriviaPlayer', back_populates='answers')

    def to_dict(self):
        return {
            'id': self.id,
            'question_id': self.question_id,
            'player_id': self.player_id,
            'selected_option_key': self.selected_option_key,
            'is_correct': self.is_correct,
            'answered_at': _iso(self.answered_at),
            'score_awarded': self.score_awarded,
        }
