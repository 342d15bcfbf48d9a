from functools import wraps
from flask import g
from flask_login import current_user
from registrar import login_manager
from registrar.utils.access import AccessDecision, NOT_TEACHER, check_grade_access
from registrar.utils.errors import Unauthorized

def role_required(*roles):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return login_manager.unauthorized()

            if current_user.role not in roles:
                raise Unauthorized(f"Role '{current_user.role}' is not allowed to perform this action")

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def grade_access_required(student_id_from):
    """Requires the current teacher to be assigned to the student's section.

    student_id_from receives the view kwargs and returns the target student
    account id. The allowed student account is stored on g.student.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return login_manager.unauthorized()

            if current_user.role != 'teacher':
                decision = AccessDecision.deny(NOT_TEACHER)
            else:
                decision = check_grade_access(current_user, student_id_from(kwargs))
            g.student = decision.raise_for_denial()

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def student_id_arg(name='student_id'):
    return lambda view_kwargs: view_kwargs.get(name)
