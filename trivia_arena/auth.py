"""Identity resolution.

Authentication happens upstream; the gateway forwards the authenticated user
as request headers. Flask-Login turns those headers into ``current_user``.
"""

from flask import current_app
from flask_login import UserMixin, current_user
from trivia_arena import login_manager
from trivia_arena.errors import ActionError


class Identity(UserMixin):
    def __init__(self, user_id, email=None):
        self.id = user_id
        self.email = email

    def __repr__(self):
        return f"<Identity {self.id}>"


@login_manager.request_loader
def load_identity_from_request(request):
    user_id = (request.headers.get(current_app.config.get('IDENTITY_HEADER', 'X-User-Id')) or '').strip()
    if not user_id:
        return None
    email = (request.headers.get(current_app.config.get('IDENTITY_EMAIL_HEADER', 'X-User-Email')) or '').strip()
    return Identity(user_id, email or None)


@login_manager.unauthorized_handler
def unauthorized():
    raise ActionError('UNAUTHORIZED', 'You must be signed in to perform this action.')


def current_identity():
    """Return the authenticated caller, raising UNAUTHORIZED when anonymous."""
    if not current_user.is_authenticated:
        unauthorized()
    return current_user._get_current_object()
