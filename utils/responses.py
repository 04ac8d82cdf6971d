from flask import jsonify


def success(data=None, message='OK', status_code=200):
    """Standard JSON envelope for successful API responses."""
    return jsonify({'status': 'success', 'message': message, 'data': data}), status_code
