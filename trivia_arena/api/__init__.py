from flask import jsonify


def ok(data, status=200):
    """Success envelope shared by every API blueprint."""
    return jsonify({'success': True, 'data': data}), status
