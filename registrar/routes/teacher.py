from io import BytesIO
from flask import Blueprint, request, jsonify, send_file, current_app, g
from flask_login import current_user
from registrar import db
from registrar.models import User, Student, Section, Subject
from registrar.utils.access import teacher_section_ids
from registrar.utils.decorators import role_required, grade_access_required, student_id_arg
from registrar.utils.errors import InvalidArgument
from registrar.utils.excel_export import export_subject_grades_to_excel
from registrar.utils.helpers import json_body, require_fields, parse_int
from registrar.utils import ledger, transcript
import logging

bp = Blueprint('teacher', __name__, url_prefix='/api/teacher')

logger = logging.getLogger(__name__)


def student_id_from_body(view_kwargs):
    student_id = json_body().get('studentId')
    if student_id in (None, ''):
        raise InvalidArgument('Missing required fields: studentId')
    return student_id


def student_id_from_entry(view_kwargs):
    entry = ledger.get_entry(view_kwargs.get('grade_id'))
    return entry.student.user_id


def semester_arg():
    semester_id = parse_int(request.args.get('semesterId'))
    if semester_id is None:
        raise InvalidArgument('semesterId is required')
    return ledger.get_semester(semester_id)


def section_students(section_ids, subject=None):
    if not section_ids:
        return []
    query = User.query.join(Student, Student.user_id == User.id)\
        .filter(Student.section_id.in_(section_ids), User.is_active.is_(True))
    if subject is not None:
        query = query.filter(User.subjects.contains(subject))
    return query.order_by(User.full_name).all()

@bp.route('/sections')
@role_required('teacher')
def sections():
    return jsonify([section.to_dict(include_students=True) for section in current_user.sections])

@bp.route('/subjects')
@role_required('teacher')
def subjects():
    query = current_user.subjects
    semester_id = parse_int(request.args.get('semesterId'))
    if semester_id is not None:
        query = query.filter(db.or_(Subject.semester_id == semester_id, Subject.semester_id.is_(None)))
    return jsonify([subject.to_dict() for subject in query.order_by(Subject.name).all()])

@bp.route('/subject-students')
@role_required('teacher')
def subject_students():
    subject = ledger.get_subject(parse_int(request.args.get('subjectId')))
    semester_arg()
    students = section_students(teacher_section_ids(current_user), subject)
    return jsonify([student.student_profile.to_dict() for student in students])

@bp.route('/grades', methods=['POST'])
@grade_access_required(student_id_from_body)
def add_grade():
    data = json_body()
    require_fields(data, 'studentId', 'subjectId', 'semesterId', 'gradeType')

    entry = ledger.upsert_grade(
        g.student.id,
        parse_int(data.get('subjectId')),
        parse_int(data.get('semesterId')),
        data.get('gradeType'),
        data.get('gradeValue'),
        teacher=current_user
    )
    return jsonify(entry.to_dict())

@bp.route('/grades/student/<int:student_id>')
@grade_access_required(student_id_arg())
def student_grades(student_id):
    entries = ledger.read_ledger(g.student)
    return jsonify([entry.to_dict() for entry in entries])

@bp.route('/grades/<int:grade_id>', methods=['PUT'])
@grade_access_required(student_id_from_entry)
def edit_grade(grade_id):
    entry = ledger.update_entry(ledger.get_entry(grade_id), json_body(), teacher=current_user)
    logger.info(f"Teacher {current_user.id} updated grade entry {entry.id}")
    return jsonify(entry.to_dict())

@bp.route('/grades/<int:grade_id>', methods=['DELETE'])
@grade_access_required(student_id_from_entry)
def delete_grade(grade_id):
    ledger.delete_entry(ledger.get_entry(grade_id))
    logger.info(f"Teacher {current_user.id} deleted grade entry {grade_id}")
    return jsonify({'success': True, 'message': 'Grade removed'})

@bp.route('/grades/form137/<int:student_id>')
@grade_access_required(student_id_arg())
def form137(student_id):
    student = g.student
    entries = ledger.read_ledger(student)

    projection = transcript.build_projection(
        student, entries,
        school_name=current_app.config.get('SCHOOL_NAME', ''),
        school_address=current_app.config.get('SCHOOL_ADDRESS', '')
    )
    pdf = transcript.render(projection)

    try:
        path = transcript.save_copy(pdf, student.full_name, current_app.config['FORM137_FOLDER'])
        logger.info(f"Form 137 for student {student.id} saved to {path}")
    except OSError as e:
        logger.error(f"Could not save Form 137 copy for student {student.id}: {e}")

    return send_file(
        BytesIO(pdf),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=transcript.form137_filename(student.full_name)
    )

@bp.route('/subject-grades/<int:subject_id>')
@role_required('teacher')
def subject_grades(subject_id):
    subject = ledger.get_subject(subject_id)
    semester = semester_arg()
    grades = ledger.subject_grades(subject.id, semester.id, teacher_section_ids(current_user))
    return jsonify(grades)

@bp.route('/subject-grades/<int:subject_id>/export')
@role_required('teacher')
def export_subject_grades(subject_id):
    subject = ledger.get_subject(subject_id)
    semester = semester_arg()
    section_ids = teacher_section_ids(current_user)
    grades = ledger.subject_grades(subject.id, semester.id, section_ids)
    students = section_students(section_ids, subject)

    output = export_subject_grades_to_excel(subject, semester, students, grades)
    return send_file(
        output,
        as_attachment=True,
        download_name=f'grades_{subject.id}_{semester.id}.xlsx',
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )

@bp.route('/adviser/students')
@role_required('teacher')
def adviser_students():
    sections = Section.query.filter_by(adviser_id=current_user.id).all()
    students = []
    for section in sections:
        students.extend(student.to_dict() for student in section.students)
    return jsonify(students)

@bp.route('/profile', methods=['PUT'])
@role_required('teacher')
def update_profile():
    data = json_body()
    if data.get('full_name'):
        current_user.full_name = data['full_name']
    if data.get('password'):
        current_user.set_password(data['password'])
    db.session.commit()
    return jsonify(current_user.to_dict())
