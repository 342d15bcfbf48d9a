import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from registrar import db
from registrar.models import Semester
from registrar.utils.helpers import school_today

logger = logging.getLogger(__name__)

scheduler = None


def archive_ended_semesters(today=None):
    """Marks every active semester whose end date has passed as archived"""
    today = today or school_today()

    semesters = Semester.query.filter(
        Semester.archived_at.is_(None),
        Semester.end_date < today
    ).all()

    for semester in semesters:
        semester.archive()
        logger.info(f"Archiving semester {semester.name} (ended {semester.end_date})")

    db.session.commit()
    logger.info(f"Semester archive check completed. Archived {len(semesters)} semesters.")
    return semesters


def run_archive_job(app):
    with app.app_context():
        try:
            archive_ended_semesters()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error in archive_ended_semesters: {e}")


def init_scheduler(app):
    global scheduler

    if scheduler is None:
        scheduler = BackgroundScheduler(daemon=True)

        hour = app.config.get('ARCHIVE_JOB_HOUR', 0)
        scheduler.add_job(
            func=run_archive_job,
            args=[app],
            trigger=CronTrigger(hour=hour, minute=0),
            id='semester_archive_job',
            name='Daily Semester Archive',
            replace_existing=True
        )

        scheduler.start()
        logger.info(f"Scheduler started, semester archiving runs daily at {hour:02d}:00")


def shutdown_scheduler():
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        logger.info("Scheduler shut down successfully")
