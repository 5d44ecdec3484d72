from flask import Blueprint, current_app
from flask_login import login_required
from sqlalchemy.exc import IntegrityError
from trivia_arena import db
from trivia_arena.api import ok
from trivia_arena.auth import current_identity
from trivia_arena.errors import ActionError
from trivia_arena.models import TriviaRoom, TriviaPlayer, TriviaQuestion, ROOM_STATUSES, OPTION_KEYS, utc_now
from trivia_arena.services.trivia.rooms import load_room, load_owned_room, find_player_for_user, scoreboard
from trivia_arena.validation import (
    json_body,
    require_string,
    optional_string,
    require_int,
    optional_int,
    optional_choice,
    int_arg,
    present,
    or_none,
)


rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['POST'])
@login_required
def create_room():
    user = current_identity()
    data = json_body()
    name = require_string(data, 'name')
    access_code = optional_string(data, 'access_code')
    status = optional_choice(data, 'status', ROOM_STATUSES)
    max_players = optional_int(data, 'max_players', minimum=1)

    now = utc_now()
    room = TriviaRoom(
        host_user_id=user.id,
        name=name,
        access_code=or_none(access_code),
        status=status if present(status) else 'lobby',
        max_players=or_none(max_players),
        created_at=now,
        updated_at=now,
    )
    db.session.add(room)
    db.session.commit()
    current_app.logger.info(f"[create_room] room={room.id} host={user.id}")
    return ok({'room': room.to_dict()}, 201)


@rooms.route('/<string:room_id>', methods=['PATCH'])
@login_required
def update_room(room_id):
    user = current_identity()
    data = json_body()
    name = optional_string(data, 'name', allow_empty=False)
    access_code = optional_string(data, 'access_code')
    status = optional_choice(data, 'status', ROOM_STATUSES)
    max_players = optional_int(data, 'max_players', minimum=1)

    room = load_owned_room(room_id, user.id)

    changed = []
    if present(name):
        room.name = name
        changed.append('name')
    if present(access_code):
        room.access_code = access_code
        changed.append('access_code')
    if present(status):
        room.status = status
        changed.append('status')
    if present(max_players):
        room.max_players = max_players
        changed.append('max_players')

    if not changed:
        raise ActionError('BAD_REQUEST', 'No changes provided for update.')

    room.updated_at = utc_now()
    db.session.add(room)
    db.session.commit()
    current_app.logger.info(f"[update_room] room={room.id} fields={','.join(changed)}")
    return ok({'room': room.to_dict()})


@rooms.route('', methods=['GET'])
@login_required
def list_my_rooms():
    user = current_identity()
    cfg = current_app.config
    max_page_size = int(cfg.get('MAX_PAGE_SIZE', 50))
    page = int_arg('page', 1, minimum=1)
    page_size = int_arg('page_size', min(int(cfg.get('DEFAULT_PAGE_SIZE', 20)), max_page_size), minimum=1, maximum=max_page_size)

    query = TriviaRoom.query.filter_by(host_user_id=user.id)
    items = (
        query.order_by(TriviaRoom.created_at.asc())
        .limit(page_size)
        .offset((page - 1) * page_size)
        .all()
    )
    total = query.count()
    return ok({
        'items': [r.to_dict() for r in items],
        'total': total,
        'page': page,
        'page_size': page_size,
    })


@rooms.route('/<string:room_id>/state', methods=['GET'])
@login_required
def get_room_state(room_id):
    user = current_identity()
    room = load_room(room_id)
    if room.host_user_id != user.id and not find_player_for_user(room.id, user.id):
        raise ActionError('FORBIDDEN', 'You are not part of this room.')
    return ok({
        'room': room.to_dict(),
        'players': [p.to_dict() for p in scoreboard(room)],
        'question_count': room.questions.count(),
    })


@rooms.route('/<string:room_id>/questions', methods=['POST'])
@login_required
def upsert_question(room_id):
    user = current_identity()
    data = json_body()
    # An empty id means a new question
    question_id = optional_string(data, 'id')
    payload = {
        'room_id': room_id,
        'order_index': require_int(data, 'order_index', minimum=0),
        'question_text': require_string(data, 'question_text'),
        'option_a': or_none(optional_string(data, 'option_a')),
        'option_b': or_none(optional_string(data, 'option_b')),
        'option_c': or_none(optional_string(data, 'option_c')),
        'option_d': or_none(optional_string(data, 'option_d')),
        'correct_option_key': or_none(optional_choice(data, 'correct_option_key', OPTION_KEYS)),
        'time_limit_seconds': or_none(optional_int(data, 'time_limit_seconds', minimum=1)),
    }

    load_owned_room(room_id, user.id)

    if present(question_id) and question_id:
        question = TriviaQuestion.query.filter_by(id=question_id).first()
        if not question:
            raise ActionError('NOT_FOUND', 'Question not found.')
        if question.room_id != room_id:
            raise ActionError('FORBIDDEN', 'Question does not belong to this room.')
        for key, value in payload.items():
            setattr(question, key, value)
        db.session.add(question)
        db.session.commit()
        current_app.logger.info(f"[upsert_question] room={room_id} question={question.id} updated")
        return ok({'question': question.to_dict()})

    question = TriviaQuestion(**payload)
    db.session.add(question)
    db.session.commit()
    current_app.logger.info(f"[upsert_question] room={room_id} question={question.id} created order={question.order_index}")
    return ok({'question': question.to_dict()}, 201)


@rooms.route('/<string:room_id>/questions', methods=['GET'])
@login_required
def list_room_questions(room_id):
    user = current_identity()
    load_owned_room(room_id, user.id)
    questions = (
        TriviaQuestion.query
        .filter_by(room_id=room_id)
        .order_by(TriviaQuestion.order_index.asc())
        .all()
    )
    return ok({
        'items': [q.to_dict() for q in questions],
        'total': len(questions),
    })


@rooms.route('/<string:room_id>/join', methods=['POST'])
@login_required
def join_room(room_id):
    user = current_identity()
    data = json_body()
    display_name = optional_string(data, 'display_name', max_length=120, allow_empty=False)

    room = load_room(room_id)

    existing = find_player_for_user(room.id, user.id)
    if existing:
        if existing.left_at is not None:
            existing.left_at = None
            db.session.add(existing)
            db.session.commit()
            current_app.logger.info(f"[join_room] room={room.id} player={existing.id} rejoined")
        return ok({'player': existing.to_dict()})

    if present(display_name):
        name = display_name
    else:
        name = user.email or current_app.config.get('DEFAULT_DISPLAY_NAME', 'Player')

    player = TriviaPlayer(
        room_id=room.id,
        user_id=user.id,
        display_name=name[:120],
        total_score=0,
        joined_at=utc_now(),
    )
    db.session.add(player)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request joined the same user first
        db.session.rollback()
        existing = find_player_for_user(room.id, user.id)
        if not existing:
            raise ActionError('CONFLICT', 'This player was created concurrently; retry the request.')
        return ok({'player': existing.to_dict()})

    current_app.logger.info(f"[join_room] room={room.id} player={player.id} user={user.id}")
    return ok({'player': player.to_dict()}, 201)


@rooms.route('/<string:room_id>/leave', methods=['POST'])
@login_required
def leave_room(room_id):
    user = current_identity()
    room = load_room(room_id)
    player = find_player_for_user(room.id, user.id)
    if not player:
        raise ActionError('NOT_FOUND', 'Player not found.')
    if player.left_at is None:
        player.left_at = utc_now()
        db.session.add(player)
        db.session.commit()
        current_app.logger.info(f"[leave_room] room={room.id} player={player.id}")
    return ok({'player': player.to_dict()})
