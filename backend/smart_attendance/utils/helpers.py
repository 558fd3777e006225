"""Helper functions for the application."""
from flask import jsonify
from typing import Any, Dict, Optional

def handle_error(error, status_code: int):
    """Handle HTTP errors with consistent format."""
    return error_response(getattr(error, 'description', None) or str(error), status_code)

def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, kind: str = 'HTTPError', details: Optional[Dict] = None):
    """Return consistent error response."""
    return jsonify({
        'error': True,
        'kind': kind,
        'message': message,
        'status_code': status_code,
        'details': details or {}
    }), status_code

def verification_error_response(error):
    """Render a VerificationError as a failure envelope."""
    return jsonify(error.to_dict()), error.status_code
