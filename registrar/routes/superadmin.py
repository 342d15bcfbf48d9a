from flask import Blueprint, request, jsonify
from registrar import db
from registrar.models import User
from registrar.utils.decorators import role_required
from registrar.utils.errors import InvalidArgument, NotFound
import logging

bp = Blueprint('superadmin', __name__, url_prefix='/api/superadmin')

logger = logging.getLogger(__name__)


def get_admin_or_404(admin_id):
    admin = db.session.get(User, admin_id)
    if not admin or admin.role != 'admin':
        raise NotFound('Admin account not found')
    return admin

@bp.route('/', methods=['POST'])
@role_required('superadmin')
def create_admin():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    password = data.get('password')

    if not username or not password:
        raise InvalidArgument('username and password are required')
    if User.query.filter_by(username=username).first():
        raise InvalidArgument('Username already exists')

    admin = User(
        username=username,
        full_name=data.get('full_name') or username,
        role='admin',
        is_active=True
    )
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    logger.info(f"Admin account '{username}' created")

    return jsonify(admin.to_dict()), 201

@bp.route('/<int:admin_id>', methods=['PUT'])
@role_required('superadmin')
def update_admin(admin_id):
    admin = get_admin_or_404(admin_id)
    data = request.get_json(silent=True) or {}

    username = (data.get('username') or '').strip()
    if username and username != admin.username:
        if User.query.filter_by(username=username).first():
            raise InvalidArgument('Username already exists')
        admin.username = username

    if data.get('full_name'):
        admin.full_name = data['full_name']
    if data.get('password'):
        admin.set_password(data['password'])
    if 'is_active' in data:
        admin.is_active = bool(data['is_active'])

    db.session.commit()
    return jsonify(admin.to_dict())

@bp.route('/<int:admin_id>', methods=['DELETE'])
@role_required('superadmin')
def delete_admin(admin_id):
    admin = get_admin_or_404(admin_id)
    db.session.delete(admin)
    db.session.commit()
    logger.info(f"Admin account '{admin.username}' deleted")
    return jsonify({'success': True, 'message': 'Admin account removed'})
