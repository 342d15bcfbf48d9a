import pytest
from sqlalchemy.orm import Session

from registrar import db
from registrar.models import User, Semester, Student, GradeEntry
from registrar.models.grade import compute_final_rating, compute_action, PASSED, FAILED
from registrar.utils import ledger
from registrar.utils.errors import InvalidArgument, NotFound, Conflict


def test_final_rating_needs_both_scores():
    assert compute_final_rating(80, None) is None
    assert compute_final_rating(None, 90) is None
    assert compute_final_rating(80, 90) == 85


@pytest.mark.parametrize('rating, action', [
    (75, PASSED),
    (74.5, FAILED),
    (98, PASSED),
    (None, None),
])
def test_action_threshold(rating, action):
    assert compute_action(rating) == action


def test_upsert_creates_then_completes_entry(seed, db_ctx):
    teacher = db.session.get(User, seed['teacher_a'])

    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 80, teacher)
    assert entry.midterm == 80
    assert entry.finals is None
    assert entry.final_rating is None
    assert entry.action is None
    assert entry.teacher_id == teacher.id

    same = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'finals', '90')
    assert same.id == entry.id
    assert same.scores() == {'midterm': 80, 'finals': 90, 'finalRating': 85, 'action': PASSED}
    assert GradeEntry.query.count() == 1


def test_upsert_overwrites_and_can_fail(seed, db_ctx):
    for grade_type, value in (('midterm', 90), ('finals', 70), ('midterm', 60)):
        entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], grade_type, value)

    assert entry.midterm == 60
    assert entry.final_rating == 65
    assert entry.action == FAILED


def test_repeated_upsert_leaves_version_alone(seed, db_ctx):
    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 88)
    version = entry.version_id

    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 88)

    assert entry.version_id == version
    assert GradeEntry.query.count() == 1


def test_entries_are_separate_per_semester_and_subject(seed, db_ctx):
    ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 80)
    ledger.upsert_grade(seed['student_a'], seed['math'], seed['second_semester'], 'midterm', 81)
    ledger.upsert_grade(seed['student_a'], seed['english'], seed['first_semester'], 'midterm', 82)

    assert GradeEntry.query.count() == 3


@pytest.mark.parametrize('value', [None, '', 'abc', -1, 100.5, True, float('nan'), float('inf'), 10 ** 400])
def test_upsert_rejects_bad_values(seed, db_ctx, value):
    with pytest.raises(InvalidArgument):
        ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', value)
    assert GradeEntry.query.count() == 0


def test_upsert_accepts_range_bounds(seed, db_ctx):
    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 0)
    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'finals', 100)

    assert entry.final_rating == 50


def test_upsert_rejects_unknown_grade_type(seed, db_ctx):
    with pytest.raises(InvalidArgument):
        ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'quiz', 90)


@pytest.mark.parametrize('student_key, subject_id, semester_id', [
    ('inactive', None, None),
    ('teacher_a', None, None),
    ('student_a', 9999, None),
    ('student_a', None, 9999),
])
def test_upsert_missing_references(seed, db_ctx, student_key, subject_id, semester_id):
    with pytest.raises(NotFound):
        ledger.upsert_grade(
            seed[student_key],
            subject_id or seed['math'],
            semester_id or seed['first_semester'],
            'midterm', 90
        )


def test_upsert_into_archived_semester_is_rejected(seed, db_ctx):
    semester = db.session.get(Semester, seed['first_semester'])
    semester.archive()
    db.session.commit()

    with pytest.raises(InvalidArgument, match='archived'):
        ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 90)


def test_upsert_creates_missing_profile(seed, db_ctx):
    user = User(username='walkin', full_name='Walk In', role='student', is_active=True)
    user.set_password('secret')
    db.session.add(user)
    db.session.commit()

    entry = ledger.upsert_grade(user.id, seed['math'], seed['first_semester'], 'finals', 77)

    assert user.student_profile is not None
    assert entry.student_id == user.student_profile.id


def test_update_entry_is_partial(seed, db_ctx):
    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 80)
    ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'finals', 70)

    entry = ledger.update_entry(entry, {'finals': 90})

    assert entry.midterm == 80
    assert entry.finals == 90

    with pytest.raises(InvalidArgument):
        ledger.update_entry(entry, {})
    with pytest.raises(InvalidArgument):
        ledger.update_entry(entry, {'midterm': 120})


def test_read_ledger_orders_by_semester_then_subject(seed, db_ctx):
    ledger.upsert_grade(seed['student_a'], seed['math'], seed['second_semester'], 'midterm', 81)
    ledger.upsert_grade(seed['student_a'], seed['english'], seed['first_semester'], 'midterm', 82)
    ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 83)

    student = db.session.get(User, seed['student_a'])
    entries = ledger.read_ledger(student)

    assert [(entry.semester_id, entry.subject.name) for entry in entries] == [
        (seed['first_semester'], 'General Mathematics'),
        (seed['first_semester'], 'Oral Communication'),
        (seed['second_semester'], 'General Mathematics'),
    ]


def test_read_ledger_without_grades_is_not_found(seed, db_ctx):
    student = db.session.get(User, seed['student_a'])

    assert ledger.list_entries(student) == []
    with pytest.raises(NotFound):
        ledger.read_ledger(student)


def test_subject_grades_filters_by_section(seed, db_ctx):
    ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 80)
    ledger.upsert_grade(seed['student_b'], seed['math'], seed['first_semester'], 'midterm', 70)

    everyone = ledger.subject_grades(seed['math'], seed['first_semester'])
    section_a = ledger.subject_grades(seed['math'], seed['first_semester'], {seed['section_a']})

    assert set(everyone) == {seed['student_a'], seed['student_b']}
    assert section_a == {seed['student_a']: {'midterm': 80, 'finals': None, 'finalRating': None, 'action': None}}
    assert ledger.subject_grades(seed['math'], seed['first_semester'], set()) == {}


def test_stale_write_becomes_conflict(seed, db_ctx):
    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 80)
    assert entry.version_id == 1

    # another request saves the same row first
    with Session(db.engine) as other:
        other.get(GradeEntry, entry.id).midterm = 95
        other.commit()

    entry.midterm = 60
    with pytest.raises(Conflict):
        ledger.commit_entry(entry)

    assert db.session.get(GradeEntry, entry.id).midterm == 95


def test_duplicate_entry_becomes_conflict(seed, db_ctx):
    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 80)

    duplicate = GradeEntry(
        student_id=entry.student_id,
        semester_id=entry.semester_id,
        subject_id=entry.subject_id,
        midterm=50
    )
    db.session.add(duplicate)

    with pytest.raises(Conflict):
        ledger.commit_entry(duplicate)
    assert GradeEntry.query.count() == 1


def test_update_entry_records_editing_teacher(seed, db_ctx):
    teacher = db.session.get(User, seed['teacher_a'])
    entry = ledger.upsert_grade(seed['student_a'], seed['math'], seed['first_semester'], 'midterm', 80)
    assert entry.teacher_id is None

    entry = ledger.update_entry(entry, {'midterm': 80}, teacher)
    assert entry.teacher_id is None

    entry = ledger.update_entry(entry, {'finals': 90}, teacher)
    assert entry.teacher_id == teacher.id


def test_concurrent_profile_creation_becomes_conflict(seed, db_ctx):
    user = User(username='walkin', full_name='Walk In', role='student', is_active=True)
    user.set_password('secret')
    db.session.add(user)
    db.session.commit()
    assert user.student_profile is None

    # another request creates the profile first
    with Session(db.engine) as other:
        other.add(Student(user_id=user.id))
        other.commit()

    with pytest.raises(Conflict):
        ledger.get_or_create_profile(user)
    assert Student.query.filter_by(user_id=user.id).count() == 1
