import logging
import math
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from registrar import db
from registrar.models import Student, Semester, Subject, GradeEntry
from registrar.models.grade import GRADE_TYPES
from registrar.utils.access import get_active_student
from registrar.utils.errors import InvalidArgument, NotFound, Conflict

logger = logging.getLogger(__name__)

MIN_GRADE = 0
MAX_GRADE = 100


def validate_grade_value(value):
    if value is None or value == '' or isinstance(value, bool):
        raise InvalidArgument('Grade value is required')
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidArgument('Grade value must be a number')
    if math.isnan(number) or number < MIN_GRADE or number > MAX_GRADE:
        raise InvalidArgument(f'Grade must be between {MIN_GRADE} and {MAX_GRADE}')
    return number


def validate_grade_type(grade_type):
    if grade_type not in GRADE_TYPES:
        raise InvalidArgument(f"gradeType must be one of: {', '.join(GRADE_TYPES)}")
    return grade_type


def get_or_create_profile(student_user):
    profile = student_user.student_profile
    if profile is None:
        profile = Student(user_id=student_user.id)
        db.session.add(profile)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            logger.warning(f"Student profile for user {student_user.id} was created concurrently")
            raise Conflict()
        logger.info(f"Created student profile for user {student_user.id}")
    return profile


def get_semester(semester_id):
    semester = db.session.get(Semester, semester_id) if semester_id is not None else None
    if not semester:
        raise NotFound('Semester not found')
    return semester


def get_subject(subject_id):
    subject = db.session.get(Subject, subject_id) if subject_id is not None else None
    if not subject:
        raise NotFound('Subject not found')
    return subject


def get_entry(entry_id):
    entry = db.session.get(GradeEntry, entry_id)
    if not entry:
        raise NotFound('Grade not found')
    return entry


def commit_entry(entry):
    """Commits pending ledger changes, turning lost-update races into Conflict"""
    try:
        db.session.commit()
    except StaleDataError:
        db.session.rollback()
        logger.warning(f"Version conflict while saving grade entry {entry.id}")
        raise Conflict()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Grade entry was created concurrently by another request")
        raise Conflict()
    return entry


def upsert_grade(student_user_id, subject_id, semester_id, grade_type, value, teacher=None):
    grade_type = validate_grade_type(grade_type)
    value = validate_grade_value(value)

    student_user = get_active_student(student_user_id)
    semester = get_semester(semester_id)
    subject = get_subject(subject_id)
    if semester.is_archived:
        raise InvalidArgument('Semester is archived')

    profile = get_or_create_profile(student_user)

    entry = GradeEntry.query.filter_by(
        student_id=profile.id,
        semester_id=semester.id,
        subject_id=subject.id
    ).first()

    if entry is None:
        entry = GradeEntry(
            student_id=profile.id,
            semester_id=semester.id,
            subject_id=subject.id,
            midterm=None,
            finals=None
        )
        db.session.add(entry)

    if getattr(entry, grade_type) != value:
        setattr(entry, grade_type, value)
        if teacher is not None:
            entry.teacher_id = teacher.id

    commit_entry(entry)
    logger.info(f"Saved {grade_type}={value} for student {student_user.id}, subject {subject.id}, semester {semester.id}")
    return entry


def update_entry(entry, data, teacher=None):
    """Overwrites the score fields present in data, leaving the others untouched"""
    changes = {}
    for grade_type in GRADE_TYPES:
        if grade_type in data:
            changes[grade_type] = validate_grade_value(data[grade_type])

    if not changes:
        raise InvalidArgument('Nothing to update, provide midterm or finals')
    if entry.semester and entry.semester.is_archived:
        raise InvalidArgument('Semester is archived')

    for grade_type, value in changes.items():
        if getattr(entry, grade_type) != value:
            setattr(entry, grade_type, value)
            if teacher is not None:
                entry.teacher_id = teacher.id

    return commit_entry(entry)


def delete_entry(entry):
    db.session.delete(entry)
    commit_entry(entry)


def ledger_query(profile):
    return GradeEntry.query.join(Semester, GradeEntry.semester_id == Semester.id)\
        .join(Subject, GradeEntry.subject_id == Subject.id)\
        .filter(GradeEntry.student_id == profile.id)\
        .order_by(Semester.start_date.asc(), Subject.name.asc(), GradeEntry.id.asc())


def list_entries(student_user):
    profile = student_user.student_profile
    if profile is None:
        return []
    return ledger_query(profile).all()


def read_ledger(student_user):
    entries = list_entries(student_user)
    if not entries:
        raise NotFound('No grades found for this student')
    return entries


def subject_grades(subject_id, semester_id, section_ids=None):
    """Maps student account id to the score fields of one subject in one semester"""
    query = GradeEntry.query.join(Student, GradeEntry.student_id == Student.id)\
        .filter(GradeEntry.subject_id == subject_id, GradeEntry.semester_id == semester_id)

    if section_ids is not None:
        if not section_ids:
            return {}
        query = query.filter(Student.section_id.in_(section_ids))

    return {entry.student.user_id: entry.scores() for entry in query.all()}
