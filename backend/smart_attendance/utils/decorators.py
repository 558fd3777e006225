"""Custom decorators for authorization."""
from functools import wraps
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from smart_attendance import db
from smart_attendance.models.user import User
from smart_attendance.utils.helpers import error_response

def get_current_user():
    """User behind the JWT identity, or None."""
    identity = get_jwt_identity()
    try:
        return db.session.get(User, int(identity))
    except (TypeError, ValueError):
        return None

def _role_required(check, message):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request()
            user = get_current_user()

            if not user or not user.is_active:
                return error_response("User not found", 404)

            if not check(user):
                return error_response(message, 403)

            return f(*args, **kwargs)
        return decorated_function
    return decorator

def student_required(f):
    """Decorator to require student role."""
    return _role_required(lambda user: user.is_student(), "Only students can mark attendance")(f)

def faculty_required(f):
    """Decorator to require faculty role or higher."""
    return _role_required(lambda user: user.is_faculty(), "Faculty access required")(f)
