from flask import request
from trivia_arena.errors import ActionError

_MISSING = object()


def _invalid(key, message):
    return ActionError('BAD_REQUEST', f"Invalid '{key}': {message}", fields={key: message})


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ActionError('BAD_REQUEST', 'Request body must be a JSON object')
    return data


def require_string(data, key, max_length=None):
    value = data.get(key)
    if value is None:
        raise _invalid(key, 'is required')
    return _check_string(key, value, max_length)


def optional_string(data, key, max_length=None, allow_empty=True):
    """Return the string at ``key``, or ``_MISSING`` when absent.

    An explicit null is treated as absent so clients may send the full form.
    """
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        return _MISSING
    if not isinstance(value, str):
        raise _invalid(key, 'must be a string')
    if not allow_empty:
        return _check_string(key, value, max_length)
    if max_length is not None and len(value) > max_length:
        raise _invalid(key, f'must be at most {max_length} characters')
    return value


def _check_string(key, value, max_length):
    if not isinstance(value, str):
        raise _invalid(key, 'must be a string')
    if not value:
        raise _invalid(key, 'must not be empty')
    if max_length is not None and len(value) > max_length:
        raise _invalid(key, f'must be at most {max_length} characters')
    return value


def optional_int(data, key, minimum=None, maximum=None):
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        return _MISSING
    return _check_int(key, value, minimum, maximum)


def require_int(data, key, minimum=None, maximum=None):
    value = data.get(key)
    if value is None:
        raise _invalid(key, 'is required')
    return _check_int(key, value, minimum, maximum)


def _check_int(key, value, minimum, maximum):
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise _invalid(key, 'must be an integer')
    if minimum is not None and value < minimum:
        raise _invalid(key, f'must be >= {minimum}')
    if maximum is not None and value > maximum:
        raise _invalid(key, f'must be <= {maximum}')
    return value


def optional_choice(data, key, choices):
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        return _MISSING
    if value not in choices:
        raise _invalid(key, f"must be one of {', '.join(choices)}")
    return value


def int_arg(key, default, minimum=None, maximum=None):
    """Parse an integer query-string argument."""
    raw = request.args.get(key)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise _invalid(key, 'must be an integer')
    return _check_int(key, value, minimum, maximum)


def present(value):
    return value is not _MISSING


def or_none(value):
    return None if value is _MISSING else value
