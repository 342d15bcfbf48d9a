from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException
from config import Config
import logging

db = SQLAlchemy()
login_manager = LoginManager()

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    from registrar.utils.errors import RegistrarError, Internal

    @app.errorhandler(RegistrarError)
    def handle_registrar_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({
            'success': False,
            'error': error.description,
            'code': error.name.lower().replace(' ', '_')
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception(f"Unhandled error: {error}")
        db.session.rollback()
        internal = Internal()
        return jsonify(internal.to_dict()), internal.status_code


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    login_manager.init_app(app)

    from registrar.models import user

    @login_manager.user_loader
    def load_user(user_id):
        try:
            loaded_user = db.session.get(user.User, int(user_id))
        except (TypeError, ValueError):
            return None
        if loaded_user and loaded_user.is_active:
            return loaded_user
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({
            'success': False,
            'error': 'Not authenticated',
            'code': 'unauthenticated'
        }), 401

    from registrar.routes import auth, superadmin, admin, teacher, student

    app.register_blueprint(auth.bp)
    app.register_blueprint(superadmin.bp)
    app.register_blueprint(admin.bp)
    app.register_blueprint(teacher.bp)
    app.register_blueprint(student.bp)

    register_error_handlers(app)

    with app.app_context():
        db.create_all()
        from registrar.utils import init_db
        init_db.initialize_database()

    if app.config.get('SCHEDULER_ENABLED'):
        from registrar.utils.scheduler import init_scheduler
        init_scheduler(app)

    return app
