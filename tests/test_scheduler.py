from datetime import date

from registrar import db
from registrar.models import Semester, User
from registrar.utils import scheduler
from registrar.utils.init_db import seed_superadmin


def test_archive_ended_semesters(seed, db_ctx):
    archived = scheduler.archive_ended_semesters(today=date(2025, 1, 6))

    assert [semester.id for semester in archived] == [seed['first_semester']]
    assert db.session.get(Semester, seed['first_semester']).is_archived
    assert not db.session.get(Semester, seed['second_semester']).is_archived

    # already archived semesters are left alone
    assert scheduler.archive_ended_semesters(today=date(2025, 1, 7)) == []


def test_semester_ending_today_stays_active(seed, db_ctx):
    assert scheduler.archive_ended_semesters(today=date(2024, 10, 25)) == []


def test_archive_endpoint_moves_semesters_to_archive(seed, client, login):
    login('admin')

    response = client.post('/api/admin/semesters/archive')

    assert response.status_code == 200
    assert [semester['id'] for semester in response.get_json()['archived']] == [seed['first_semester']]

    active = [semester['id'] for semester in client.get('/api/admin/semesters').get_json()]
    archived = [semester['id'] for semester in client.get('/api/admin/archived-semesters').get_json()]
    assert active == [seed['second_semester']]
    assert archived == [seed['first_semester']]


def test_run_archive_job_uses_app_context(app, seed):
    scheduler.run_archive_job(app)

    with app.app_context():
        assert db.session.get(Semester, seed['first_semester']).is_archived


class FakeScheduler:
    instances = []

    def __init__(self, **kwargs):
        self.jobs = []
        self.running = False
        FakeScheduler.instances.append(self)

    def add_job(self, **kwargs):
        self.jobs.append(kwargs)

    def start(self):
        self.running = True

    def shutdown(self):
        self.running = False


def test_init_scheduler_registers_daily_job(app, monkeypatch):
    monkeypatch.setattr(scheduler, 'BackgroundScheduler', FakeScheduler)
    monkeypatch.setattr(scheduler, 'scheduler', None)
    app.config['ARCHIVE_JOB_HOUR'] = 2

    scheduler.init_scheduler(app)
    fake = scheduler.scheduler

    assert fake.running
    assert fake.jobs[0]['id'] == 'semester_archive_job'
    assert fake.jobs[0]['args'] == [app]

    # a second call does not start another scheduler
    scheduler.init_scheduler(app)
    assert scheduler.scheduler is fake

    scheduler.shutdown_scheduler()
    assert not fake.running
    assert scheduler.scheduler is None


def test_seed_superadmin_only_with_password(app):
    with app.app_context():
        seed_superadmin()
        assert User.query.filter_by(role='superadmin').count() == 0

        app.config['SUPERADMIN_PASSWORD'] = 'rootpw'
        seed_superadmin()
        seed_superadmin()

        accounts = User.query.filter_by(role='superadmin').all()
        assert [account.username for account in accounts] == ['superadmin']
        assert accounts[0].check_password('rootpw')
