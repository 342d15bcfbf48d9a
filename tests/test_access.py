import pytest

from registrar import db
from registrar.models import User
from registrar.utils.access import (
    AccessDecision, check_grade_access, teacher_section_ids,
    ALLOWED, NOT_TEACHER, UNASSIGNED, OTHER_SECTION
)
from registrar.utils.errors import NotFound, Unauthorized, Forbidden


def test_teacher_section_ids_only_counts_assigned_teacher(seed, db_ctx):
    teacher_a = db.session.get(User, seed['teacher_a'])
    idle = db.session.get(User, seed['idle_teacher'])

    assert teacher_section_ids(teacher_a) == {seed['section_a']}
    assert teacher_section_ids(idle) == set()


def test_teacher_of_section_is_allowed(seed, db_ctx):
    teacher = db.session.get(User, seed['teacher_a'])

    decision = check_grade_access(teacher, seed['student_a'])

    assert decision.allowed
    assert decision.reason == ALLOWED
    assert decision.student.id == seed['student_a']


def test_teacher_of_other_section_is_denied(seed, db_ctx):
    teacher = db.session.get(User, seed['teacher_a'])

    decision = check_grade_access(teacher, seed['student_b'])

    assert not decision.allowed
    assert decision.reason == OTHER_SECTION


def test_adviser_without_teaching_assignment_is_denied(seed, db_ctx):
    # teacher_b advises section A but does not teach it
    adviser = db.session.get(User, seed['teacher_b'])

    decision = check_grade_access(adviser, seed['student_a'])

    assert decision.reason == OTHER_SECTION


def test_unassigned_student_is_denied(seed, db_ctx):
    teacher = db.session.get(User, seed['teacher_a'])

    decision = check_grade_access(teacher, seed['unassigned'])

    assert decision.reason == UNASSIGNED


def test_teacher_without_sections_is_denied(seed, db_ctx):
    teacher = db.session.get(User, seed['idle_teacher'])

    assert check_grade_access(teacher, seed['student_a']).reason == OTHER_SECTION


@pytest.mark.parametrize('requester_key', ['admin', 'superadmin', 'student_a'])
def test_non_teacher_is_denied(seed, db_ctx, requester_key):
    requester = db.session.get(User, seed[requester_key])

    decision = check_grade_access(requester, seed['student_a'])

    assert decision.reason == NOT_TEACHER


def test_anonymous_requester_is_denied(seed, db_ctx):
    assert check_grade_access(None, seed['student_a']).reason == NOT_TEACHER


@pytest.mark.parametrize('student_key', ['inactive', 'teacher_b'])
def test_inactive_or_non_student_target_is_not_found(seed, db_ctx, student_key):
    teacher = db.session.get(User, seed['teacher_a'])

    with pytest.raises(NotFound):
        check_grade_access(teacher, seed[student_key])


def test_missing_student_is_not_found(seed, db_ctx):
    teacher = db.session.get(User, seed['teacher_a'])

    with pytest.raises(NotFound):
        check_grade_access(teacher, 9999)


def test_raise_for_denial_maps_reasons_to_errors():
    with pytest.raises(Unauthorized):
        AccessDecision.deny(NOT_TEACHER).raise_for_denial()

    with pytest.raises(Forbidden) as excinfo:
        AccessDecision.deny(UNASSIGNED).raise_for_denial()
    assert excinfo.value.to_dict()['reason'] == UNASSIGNED

    assert AccessDecision.allow('student').raise_for_denial() == 'student'
