from registrar import db
from sqlalchemy import inspect, text
from flask import current_app
import logging

logger = logging.getLogger(__name__)

DEFAULT_YEAR_LEVELS = ('Grade 11', 'Grade 12')


def upgrade_schema():
    inspector = inspect(db.engine)

    if 'semesters' in inspector.get_table_names():
        columns = [col['name'] for col in inspector.get_columns('semesters')]

        with db.engine.begin() as connection:
            if 'archived_at' not in columns:
                logger.info("Adding archived_at column to semesters")
                connection.execute(text("ALTER TABLE semesters ADD COLUMN archived_at TIMESTAMP"))

    if 'grade_entries' in inspector.get_table_names():
        columns = [col['name'] for col in inspector.get_columns('grade_entries')]

        with db.engine.begin() as connection:
            if 'version_id' not in columns:
                logger.info("Adding version_id column to grade_entries")
                connection.execute(text("ALTER TABLE grade_entries ADD COLUMN version_id INTEGER NOT NULL DEFAULT 1"))


def seed_year_levels():
    from registrar.models import YearLevel

    if YearLevel.query.count() == 0:
        for order, name in enumerate(DEFAULT_YEAR_LEVELS, 1):
            db.session.add(YearLevel(name=name, display_order=order))
        db.session.commit()
        logger.info("Created default year levels")


def seed_superadmin():
    from registrar.models import User

    username = current_app.config.get('SUPERADMIN_USERNAME')
    password = current_app.config.get('SUPERADMIN_PASSWORD')
    if not username or not password:
        return None

    if User.query.filter_by(role='superadmin').first():
        return None

    superadmin = User(username=username, full_name='Super Administrator', role='superadmin', is_active=True)
    superadmin.set_password(password)
    db.session.add(superadmin)
    db.session.commit()
    logger.info(f"Created predefined superadmin account '{username}'")
    return superadmin


def initialize_database():
    upgrade_schema()
    seed_year_levels()
    seed_superadmin()
    logger.info("Database initialization completed successfully")
