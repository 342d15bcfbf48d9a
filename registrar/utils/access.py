import logging
from collections import namedtuple
from registrar import db
from registrar.models import User, Section
from registrar.utils.errors import NotFound, Unauthorized, Forbidden
from registrar.utils.helpers import parse_int

logger = logging.getLogger(__name__)

ALLOWED = 'allowed'
NOT_TEACHER = 'not_teacher'
UNASSIGNED = 'unassigned'
OTHER_SECTION = 'other_section'

DENIAL_MESSAGES = {
    NOT_TEACHER: 'Not authorized to access grades',
    UNASSIGNED: 'Student is not assigned to a section',
    OTHER_SECTION: 'Not authorized to access grades for this student'
}


class AccessDecision(namedtuple('AccessDecision', ['allowed', 'reason', 'student'])):
    __slots__ = ()

    @classmethod
    def allow(cls, student):
        return cls(True, ALLOWED, student)

    @classmethod
    def deny(cls, reason, student=None):
        return cls(False, reason, student)

    def raise_for_denial(self):
        """Turns a denial into the matching error, returns the student account otherwise"""
        if self.allowed:
            return self.student
        message = DENIAL_MESSAGES.get(self.reason, 'Forbidden')
        if self.reason == NOT_TEACHER:
            raise Unauthorized(message, reason=self.reason)
        raise Forbidden(message, reason=self.reason)


def teacher_section_ids(teacher):
    rows = db.session.query(Section.id).filter(Section.teacher_id == teacher.id).all()
    return {row[0] for row in rows}


def get_active_student(student_user_id):
    student_user_id = parse_int(student_user_id)
    student = db.session.get(User, student_user_id) if student_user_id is not None else None
    if not student or student.role != 'student' or not student.is_active:
        raise NotFound('Student not found or inactive')
    return student


def check_grade_access(requester, student_user_id):
    if requester is None or requester.role != 'teacher':
        return AccessDecision.deny(NOT_TEACHER)

    section_ids = teacher_section_ids(requester)
    student = get_active_student(student_user_id)

    profile = student.student_profile
    section_id = profile.section_id if profile else None

    if section_id is None:
        logger.warning(f"Teacher {requester.id} denied for unassigned student {student.id}")
        return AccessDecision.deny(UNASSIGNED, student)

    if section_id not in section_ids:
        logger.warning(f"Teacher {requester.id} denied for student {student.id} of section {section_id}")
        return AccessDecision.deny(OTHER_SECTION, student)

    return AccessDecision.allow(student)
