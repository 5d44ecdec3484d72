from trivia_arena.errors import ActionError
from trivia_arena.models import TriviaRoom, TriviaPlayer


def load_room(room_id: str) -> TriviaRoom:
    room = TriviaRoom.query.filter_by(id=room_id).first()
    if not room:
        raise ActionError('NOT_FOUND', 'Room not found.')
    return room


def load_owned_room(room_id: str, user_id: str) -> TriviaRoom:
    """Load a room hosted by ``user_id``.

    A room hosted by someone else is reported as missing.
    """
    room = TriviaRoom.query.filter_by(id=room_id, host_user_id=user_id).first()
    if not room:
        raise ActionError('NOT_FOUND', 'Room not found for this user.')
    return room


def find_player_for_user(room_id: str, user_id: str):
    return TriviaPlayer.query.filter_by(room_id=room_id, user_id=user_id).first()


def scoreboard(room: TriviaRoom):
    return (
        TriviaPlayer.query
        .filter_by(room_id=room.id)
        .order_by(TriviaPlayer.total_score.desc(), TriviaPlayer.joined_at.asc())
        .all()
    )
