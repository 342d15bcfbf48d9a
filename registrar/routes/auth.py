from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, current_user, login_required
from registrar.models import User
import logging

bp = Blueprint('auth', __name__, url_prefix='/api/users')

logger = logging.getLogger(__name__)

@bp.route('/auth', methods=['POST'])
def login():
    data = request.get_json(silent=True) or request.form
    username = data.get('username')
    password = data.get('password')
    remember = bool(data.get('remember'))

    user = User.query.filter_by(username=username).first() if username else None

    if not user or not password or not user.check_password(password):
        logger.info(f"Failed login for username '{username}'")
        return jsonify({
            'success': False,
            'error': 'Invalid username or password'
        }), 401

    if not user.is_active:
        return jsonify({
            'success': False,
            'error': 'Your account is inactive. Please contact the administrator'
        }), 403

    login_user(user, remember=remember)

    return jsonify({
        'id': user.id,
        'username': user.username,
        'role': user.role
    })

@bp.route('/logout', methods=['POST'])
def logout():
    logout_user()
    return jsonify({'success': True, 'message': 'Logged out'})

@bp.route('/profile')
@login_required
def profile():
    return jsonify(current_user.to_dict())
