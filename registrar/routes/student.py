from flask import Blueprint, jsonify
from flask_login import current_user
from registrar.utils.decorators import role_required
from registrar.utils.errors import NotFound
from registrar.utils import ledger

bp = Blueprint('student', __name__, url_prefix='/api/student')

@bp.route('/grades')
@role_required('student')
def grades():
    entries = ledger.list_entries(current_user)
    return jsonify([entry.to_dict() for entry in entries])

@bp.route('/profile')
@role_required('student')
def profile():
    student = current_user.student_profile
    if not student:
        raise NotFound('Student profile not found')
    return jsonify(student.to_dict())
