from flask import current_app
from sqlalchemy.exc import IntegrityError
from typing import Optional, Tuple
from trivia_arena import db
from trivia_arena.errors import ActionError
from trivia_arena.models import TriviaAnswer, TriviaPlayer, TriviaQuestion, TriviaRoom, utc_now


def grade_answer(question: TriviaQuestion, selected_option_key: Optional[str]) -> bool:
    """An answer is correct only when a key was picked and the question has one."""
    return bool(
        selected_option_key
        and question.correct_option_key
        and selected_option_key == question.correct_option_key
    )


def find_answer(question_id: str, player_id: str) -> Optional[TriviaAnswer]:
    return TriviaAnswer.query.filter_by(question_id=question_id, player_id=player_id).first()


def record_answer(question_id: str, player_id: str, selected_option_key: Optional[str], user_id: str) -> Tuple[TriviaAnswer, TriviaPlayer]:
    """Record (or re-record) a player's answer and reconcile their total score.

    - Only the room host or the player's own user may record the answer
    - At most one answer exists per (question, player); a second call updates it
    - The player's total moves by the difference between the new and the
      previously awarded score, so re-recording never double counts
    """
    question = TriviaQuestion.query.filter_by(id=question_id).first()
    if not question:
        raise ActionError('NOT_FOUND', 'Question not found.')

    player = TriviaPlayer.query.filter_by(id=player_id).first()
    if not player:
        raise ActionError('NOT_FOUND', 'Player not found.')

    if player.room_id != question.room_id:
        raise ActionError('BAD_REQUEST', 'Player and question are in different rooms.')

    room = TriviaRoom.query.filter_by(id=question.room_id).first()
    if not room:
        raise ActionError('NOT_FOUND', 'Room not found.')

    is_owner = room.host_user_id == user_id
    is_player_user = player.user_id is not None and player.user_id == user_id
    if not is_owner and not is_player_user:
        raise ActionError('FORBIDDEN', 'You do not have permission to record this answer.')

    is_correct = grade_answer(question, selected_option_key)
    new_score = int(current_app.config.get('CORRECT_ANSWER_POINTS', 10)) if is_correct else 0

    answer = find_answer(question.id, player.id)
    previous_score = answer.score_awarded if answer else 0
    now = utc_now()

    if answer:
        answer.selected_option_key = selected_option_key
        answer.is_correct = is_correct
        answer.answered_at = now
        answer.score_awarded = new_score
    else:
        answer = TriviaAnswer(
            question_id=question.id,
            player_id=player.id,
            selected_option_key=selected_option_key,
            is_correct=is_correct,
            answered_at=now,
            score_awarded=new_score,
        )
    delta = new_score - previous_score
    try:
        db.session.add(answer)
        if delta:
            # Applied in SQL; the loaded total may already be stale
            TriviaPlayer.query.filter_by(id=player.id).update(
                {TriviaPlayer.total_score: TriviaPlayer.total_score + delta},
                synchronize_session=False,
            )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ActionError('CONFLICT', 'This answer was recorded concurrently; retry the request.')

    current_app.logger.info(
        f"[record_answer] room={room.id} player={player.id} question={question.id} "
        f"selected={selected_option_key} correct={is_correct} delta={delta} total={player.total_score}"
    )
    return answer, player
