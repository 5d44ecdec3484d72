from flask import Blueprint
from flask_login import login_required
from trivia_arena.api import ok
from trivia_arena.auth import current_identity
from trivia_arena.models import OPTION_KEYS
from trivia_arena.services.trivia.scoring import record_answer as svc_record_answer
from trivia_arena.validation import json_body, require_string, optional_choice, or_none


answers = Blueprint('answers', __name__)


@answers.route('', methods=['POST'])
@login_required
def record_answer():
    user = current_identity()
    data = json_body()
    question_id = require_string(data, 'question_id')
    player_id = require_string(data, 'player_id')
    selected_option_key = or_none(optional_choice(data, 'selected_option_key', OPTION_KEYS))

    answer, player = svc_record_answer(question_id, player_id, selected_option_key, user.id)
    return ok({
        'answer': answer.to_dict(),
        'player': player.to_dict(),
    })
