"""Error envelope for the trivia API.

Handlers raise ActionError instead of returning error tuples; the handler
registered here renders it as::

    {"success": false, "error": {"code": "NOT_FOUND", "message": "..."}}
"""

from flask import jsonify, current_app, request

HTTP_STATUS_BY_CODE = {
    'BAD_REQUEST': 400,
    'UNAUTHORIZED': 401,
    'FORBIDDEN': 403,
    'NOT_FOUND': 404,
    'CONFLICT': 409,
}


class ActionError(Exception):
    """A client-facing failure of a request handler."""

    def __init__(self, code, message, fields=None):
        if code not in HTTP_STATUS_BY_CODE:
            raise ValueError(f"Unknown error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.fields = fields

    @property
    def http_status(self):
        return HTTP_STATUS_BY_CODE[self.code]

    def to_response(self):
        error = {'code': self.code, 'message': self.message}
        if self.fields:
            error['fields'] = self.fields
        return {'success': False, 'error': error}


def register_error_handlers(flask_app):
    @flask_app.errorhandler(ActionError)
    def handle_action_error(exc):
        current_app.logger.info(f"[action_error] {request.method} {request.path} code={exc.code} message={exc.message}")
        return jsonify(exc.to_response()), exc.http_status
