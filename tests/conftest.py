from datetime import date

import pytest

from config import TestConfig
from registrar import create_app, db
from registrar.models import User, Student, Strand, YearLevel, Section, Subject, Semester

PASSWORD = 'password123'


@pytest.fixture
def app(tmp_path):
    class Config(TestConfig):
        FORM137_FOLDER = str(tmp_path / 'form137')

    app = create_app(Config)
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_ctx(app):
    with app.app_context():
        yield db
        db.session.rollback()


def make_user(username, role, full_name=None, is_active=True, strand=None):
    user = User(
        username=username,
        full_name=full_name or username.title(),
        role=role,
        is_active=is_active,
        strand_id=strand.id if strand else None
    )
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.flush()
    return user


def make_student(username, section=None, full_name=None, is_active=True, strand=None, lrn=None):
    user = make_user(username, 'student', full_name=full_name, is_active=is_active, strand=strand)
    db.session.add(Student(
        user_id=user.id,
        lrn=lrn,
        section_id=section.id if section else None,
        year_level_id=section.year_level_id if section else None
    ))
    db.session.flush()
    return user


@pytest.fixture
def seed(app):
    """A small school: two sections with their own teachers and students"""
    with app.app_context():
        grade11 = YearLevel.query.filter_by(name='Grade 11').first()
        stem = Strand(name='STEM')
        db.session.add(stem)
        db.session.flush()

        admin = make_user('admin', 'admin')
        superadmin = make_user('root', 'superadmin')
        teacher_a = make_user('teacher_a', 'teacher', full_name='Ana Reyes')
        teacher_b = make_user('teacher_b', 'teacher', full_name='Ben Cruz')
        idle_teacher = make_user('teacher_idle', 'teacher')

        section_a = Section(name='Einstein', teacher_id=teacher_a.id, adviser_id=teacher_b.id,
                            strand_id=stem.id, year_level_id=grade11.id)
        section_b = Section(name='Newton', teacher_id=teacher_b.id, adviser_id=teacher_a.id,
                            strand_id=stem.id, year_level_id=grade11.id)
        db.session.add_all([section_a, section_b])
        db.session.flush()

        first = Semester(name='First Semester', strand_id=stem.id, year_level_id=grade11.id,
                         start_date=date(2024, 6, 3), end_date=date(2024, 10, 25))
        second = Semester(name='Second Semester', strand_id=stem.id, year_level_id=grade11.id,
                          start_date=date(2024, 11, 4), end_date=date(2099, 3, 28))
        db.session.add_all([first, second])
        db.session.flush()

        math = Subject(name='General Mathematics', code='GENMATH', strand_id=stem.id)
        english = Subject(name='Oral Communication', code='ORALCOM', strand_id=stem.id)
        db.session.add_all([math, english])
        db.session.flush()

        student_a = make_student('juan', section_a, full_name='Juan Dela Cruz', strand=stem, lrn='100000000001')
        student_b = make_student('maria', section_b, full_name='Maria Santos', strand=stem, lrn='100000000002')
        unassigned = make_student('pedro', None, full_name='Pedro Penduko')
        inactive = make_student('jose', section_a, full_name='Jose Rizal', is_active=False)

        for user in (teacher_a, teacher_b, student_a, student_b):
            user.subjects = [math, english]

        db.session.commit()

        return {
            'admin': admin.id,
            'superadmin': superadmin.id,
            'teacher_a': teacher_a.id,
            'teacher_b': teacher_b.id,
            'idle_teacher': idle_teacher.id,
            'section_a': section_a.id,
            'section_b': section_b.id,
            'first_semester': first.id,
            'second_semester': second.id,
            'math': math.id,
            'english': english.id,
            'strand': stem.id,
            'grade11': grade11.id,
            'student_a': student_a.id,
            'student_b': student_b.id,
            'unassigned': unassigned.id,
            'inactive': inactive.id,
        }


@pytest.fixture
def login(client):
    def do_login(username, password=PASSWORD):
        response = client.post('/api/users/auth', json={'username': username, 'password': password})
        assert response.status_code == 200, response.get_json()
        return response
    return do_login
