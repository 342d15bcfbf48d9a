from flask import Blueprint, request, jsonify, send_file, current_app
from registrar import db
from registrar.models import User, Student, Strand, YearLevel, Section, Subject, Semester, GradeEntry
from registrar.utils.decorators import role_required
from registrar.utils.errors import InvalidArgument, NotFound
from registrar.utils.helpers import json_body, require_fields, parse_date, parse_int
from registrar.utils.importer import import_students
from registrar.utils.excel_export import export_students_to_excel
from registrar.utils.scheduler import archive_ended_semesters
import logging

bp = Blueprint('admin', __name__, url_prefix='/api/admin')

logger = logging.getLogger(__name__)

ADMIN_ROLES = ('admin', 'superadmin')
MANAGED_ROLES = ('student', 'teacher')


def get_or_404(model, object_id, message):
    obj = db.session.get(model, object_id) if object_id is not None else None
    if not obj:
        raise NotFound(message)
    return obj


def optional_reference(model, value, message):
    object_id = parse_int(value)
    if object_id is None:
        return None
    return get_or_404(model, object_id, message)


def apply_subjects(user, subject_ids):
    subjects = []
    for subject_id in subject_ids or []:
        subjects.append(get_or_404(Subject, parse_int(subject_id), f'Subject {subject_id} not found'))
    user.subjects = subjects


def apply_student_profile(profile, data):
    if 'lrn' in data:
        lrn = (data.get('lrn') or '').strip() or None
        if lrn and Student.query.filter(Student.lrn == lrn, Student.id != profile.id).first():
            raise InvalidArgument('LRN already exists')
        profile.lrn = lrn
    if 'birthdate' in data:
        profile.birthdate = parse_date(data.get('birthdate'))
    for field in ('gender', 'address', 'guardian_name', 'guardian_contact'):
        if field in data:
            setattr(profile, field, data.get(field))
    if 'section_id' in data:
        section = optional_reference(Section, data.get('section_id'), 'Section not found')
        profile.section_id = section.id if section else None
        if section and section.year_level_id:
            profile.year_level_id = section.year_level_id
    if 'year_level_id' in data:
        year_level = optional_reference(YearLevel, data.get('year_level_id'), 'Year level not found')
        profile.year_level_id = year_level.id if year_level else None

# Accounts

@bp.route('/users')
@role_required(*ADMIN_ROLES)
def users():
    query = User.query
    role = request.args.get('role')
    if role:
        query = query.filter_by(role=role)
    return jsonify([user.to_dict() for user in query.order_by(User.full_name).all()])

@bp.route('/users', methods=['POST'])
@role_required(*ADMIN_ROLES)
def add_user():
    data = json_body()
    require_fields(data, 'username', 'password', 'full_name', 'role')

    if data['role'] not in MANAGED_ROLES:
        raise InvalidArgument(f"role must be one of: {', '.join(MANAGED_ROLES)}")
    if User.query.filter_by(username=data['username']).first():
        raise InvalidArgument('Username already exists')

    strand = optional_reference(Strand, data.get('strand_id'), 'Strand not found')
    user = User(
        username=data['username'].strip(),
        full_name=data['full_name'],
        role=data['role'],
        is_active=True,
        strand_id=strand.id if strand else None
    )
    user.set_password(data['password'])
    apply_subjects(user, data.get('subject_ids'))
    db.session.add(user)
    db.session.flush()

    if user.role == 'student':
        profile = Student(user_id=user.id)
        db.session.add(profile)
        apply_student_profile(profile, data)

    db.session.commit()
    logger.info(f"{user.role.capitalize()} account '{user.username}' created")
    return jsonify(user.to_dict()), 201

@bp.route('/users/<int:user_id>', methods=['PUT'])
@role_required(*ADMIN_ROLES)
def edit_user(user_id):
    user = get_or_404(User, user_id, 'User not found')
    if user.role not in MANAGED_ROLES:
        raise InvalidArgument('Only student and teacher accounts can be edited here')

    data = json_body()
    username = (data.get('username') or '').strip()
    if username and username != user.username:
        if User.query.filter_by(username=username).first():
            raise InvalidArgument('Username already exists')
        user.username = username

    if data.get('full_name'):
        user.full_name = data['full_name']
    if data.get('password'):
        user.set_password(data['password'])
    if 'strand_id' in data:
        strand = optional_reference(Strand, data.get('strand_id'), 'Strand not found')
        user.strand_id = strand.id if strand else None
    if 'subject_ids' in data:
        apply_subjects(user, data.get('subject_ids'))

    if user.role == 'student':
        profile = user.student_profile
        if profile is None:
            profile = Student(user_id=user.id)
            db.session.add(profile)
        apply_student_profile(profile, data)

    db.session.commit()
    return jsonify(user.to_dict())

@bp.route('/users/<int:user_id>/toggle', methods=['POST'])
@role_required(*ADMIN_ROLES)
def toggle_user_status(user_id):
    user = get_or_404(User, user_id, 'User not found')
    if user.role not in MANAGED_ROLES:
        raise InvalidArgument('Only student and teacher accounts can be deactivated here')
    user.is_active = not user.is_active
    db.session.commit()
    logger.info(f"User '{user.username}' is_active set to {user.is_active}")
    return jsonify(user.to_dict())

# Strands

@bp.route('/strands')
@role_required(*ADMIN_ROLES)
def strands():
    return jsonify([strand.to_dict() for strand in Strand.query.order_by(Strand.name).all()])


def apply_strand_members(strand, data):
    if 'section_ids' in data:
        Section.query.filter_by(strand_id=strand.id).update({'strand_id': None})
        for section_id in data.get('section_ids') or []:
            get_or_404(Section, parse_int(section_id), f'Section {section_id} not found').strand_id = strand.id
    if 'subject_ids' in data:
        Subject.query.filter_by(strand_id=strand.id).update({'strand_id': None})
        for subject_id in data.get('subject_ids') or []:
            get_or_404(Subject, parse_int(subject_id), f'Subject {subject_id} not found').strand_id = strand.id

@bp.route('/strands', methods=['POST'])
@role_required(*ADMIN_ROLES)
def add_strand():
    data = json_body()
    require_fields(data, 'name')
    if Strand.query.filter_by(name=data['name']).first():
        raise InvalidArgument('Strand already exists')

    strand = Strand(name=data['name'], description=data.get('description'))
    db.session.add(strand)
    db.session.flush()
    apply_strand_members(strand, data)
    db.session.commit()
    return jsonify(strand.to_dict()), 201

@bp.route('/strands/<int:strand_id>', methods=['PUT'])
@role_required(*ADMIN_ROLES)
def edit_strand(strand_id):
    strand = get_or_404(Strand, strand_id, 'Strand not found')
    data = json_body()

    if data.get('name') and data['name'] != strand.name:
        if Strand.query.filter_by(name=data['name']).first():
            raise InvalidArgument('Strand already exists')
        strand.name = data['name']
    if 'description' in data:
        strand.description = data.get('description')
    apply_strand_members(strand, data)
    db.session.commit()
    return jsonify(strand.to_dict())

@bp.route('/strands/<int:strand_id>', methods=['DELETE'])
@role_required(*ADMIN_ROLES)
def delete_strand(strand_id):
    strand = get_or_404(Strand, strand_id, 'Strand not found')
    for model in (Section, Subject, Semester, User):
        model.query.filter_by(strand_id=strand.id).update({'strand_id': None})
    db.session.delete(strand)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Strand removed'})

# Year levels

@bp.route('/year-levels')
@role_required(*ADMIN_ROLES)
def year_levels():
    levels = YearLevel.query.order_by(YearLevel.display_order, YearLevel.name).all()
    return jsonify([level.to_dict() for level in levels])

@bp.route('/year-levels', methods=['POST'])
@role_required(*ADMIN_ROLES)
def add_year_level():
    data = json_body()
    require_fields(data, 'name')
    if YearLevel.query.filter_by(name=data['name']).first():
        raise InvalidArgument('Year level already exists')
    level = YearLevel(name=data['name'], display_order=parse_int(data.get('display_order')) or 0)
    db.session.add(level)
    db.session.commit()
    return jsonify(level.to_dict()), 201

# Sections

def section_teacher(value, message):
    teacher = optional_reference(User, value, message)
    if teacher and teacher.role != 'teacher':
        raise InvalidArgument(f'{message}: account is not a teacher')
    return teacher


def apply_section(section, data):
    if data.get('name'):
        section.name = data['name']
    if 'teacher_id' in data:
        teacher = section_teacher(data.get('teacher_id'), 'Teacher not found')
        section.teacher_id = teacher.id if teacher else None
    if 'adviser_id' in data:
        adviser = section_teacher(data.get('adviser_id'), 'Adviser not found')
        section.adviser_id = adviser.id if adviser else None
    if 'strand_id' in data:
        strand = optional_reference(Strand, data.get('strand_id'), 'Strand not found')
        section.strand_id = strand.id if strand else None
    if 'year_level_id' in data:
        level = optional_reference(YearLevel, data.get('year_level_id'), 'Year level not found')
        section.year_level_id = level.id if level else None

    duplicates = Section.query.filter(
        Section.name == section.name,
        Section.year_level_id == section.year_level_id
    )
    if section.id:
        duplicates = duplicates.filter(Section.id != section.id)
    if duplicates.first():
        raise InvalidArgument('A section with this name already exists for the year level')

@bp.route('/sections')
@role_required(*ADMIN_ROLES)
def sections():
    include_students = request.args.get('include_students') == '1'
    return jsonify([section.to_dict(include_students=include_students)
                    for section in Section.query.order_by(Section.name).all()])

@bp.route('/sections', methods=['POST'])
@role_required(*ADMIN_ROLES)
def add_section():
    data = json_body()
    require_fields(data, 'name')
    section = Section(name=data['name'])
    apply_section(section, data)
    db.session.add(section)
    db.session.commit()
    return jsonify(section.to_dict()), 201

@bp.route('/sections/<int:section_id>', methods=['PUT'])
@role_required(*ADMIN_ROLES)
def edit_section(section_id):
    section = get_or_404(Section, section_id, 'Section not found')
    apply_section(section, json_body())
    db.session.commit()
    return jsonify(section.to_dict())

@bp.route('/sections/<int:section_id>', methods=['DELETE'])
@role_required(*ADMIN_ROLES)
def delete_section(section_id):
    section = get_or_404(Section, section_id, 'Section not found')
    Student.query.filter_by(section_id=section.id).update({'section_id': None})
    db.session.delete(section)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Section removed'})

@bp.route('/sections/<int:section_id>/students', methods=['POST'])
@role_required(*ADMIN_ROLES)
def assign_students(section_id):
    """Moves the given students into the section, the profile is the only membership record"""
    section = get_or_404(Section, section_id, 'Section not found')
    data = json_body()
    student_ids = data.get('student_ids')
    if not isinstance(student_ids, list):
        raise InvalidArgument('student_ids must be a list')

    for student_id in student_ids:
        user = get_or_404(User, parse_int(student_id), f'Student {student_id} not found')
        if user.role != 'student':
            raise NotFound(f'Student {student_id} not found')
        profile = user.student_profile
        if profile is None:
            profile = Student(user_id=user.id)
            db.session.add(profile)
        profile.section_id = section.id
        if section.year_level_id:
            profile.year_level_id = section.year_level_id

    db.session.commit()
    return jsonify(section.to_dict(include_students=True))

# Subjects

def apply_subject(subject, data):
    if data.get('name'):
        subject.name = data['name']
    if 'code' in data:
        code = (data.get('code') or '').strip() or None
        if code and Subject.query.filter(Subject.code == code, Subject.id != subject.id).first():
            raise InvalidArgument('Subject code already exists')
        subject.code = code
    if 'description' in data:
        subject.description = data.get('description')
    if 'strand_id' in data:
        strand = optional_reference(Strand, data.get('strand_id'), 'Strand not found')
        subject.strand_id = strand.id if strand else None
    if 'semester_id' in data:
        semester = optional_reference(Semester, data.get('semester_id'), 'Semester not found')
        subject.semester_id = semester.id if semester else None

@bp.route('/subjects')
@role_required(*ADMIN_ROLES)
def subjects():
    return jsonify([subject.to_dict() for subject in Subject.query.order_by(Subject.name).all()])

@bp.route('/subjects', methods=['POST'])
@role_required(*ADMIN_ROLES)
def add_subject():
    data = json_body()
    require_fields(data, 'name')
    subject = Subject(name=data['name'])
    db.session.add(subject)
    apply_subject(subject, data)
    db.session.commit()
    return jsonify(subject.to_dict()), 201

@bp.route('/subjects/<int:subject_id>', methods=['PUT'])
@role_required(*ADMIN_ROLES)
def edit_subject(subject_id):
    subject = get_or_404(Subject, subject_id, 'Subject not found')
    apply_subject(subject, json_body())
    db.session.commit()
    return jsonify(subject.to_dict())

@bp.route('/subjects/<int:subject_id>', methods=['DELETE'])
@role_required(*ADMIN_ROLES)
def delete_subject(subject_id):
    subject = get_or_404(Subject, subject_id, 'Subject not found')
    if GradeEntry.query.filter_by(subject_id=subject.id).first():
        raise InvalidArgument('Subject has recorded grades and cannot be removed')
    db.session.delete(subject)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Subject removed'})

# Semesters

def apply_semester(semester, data):
    if data.get('name'):
        semester.name = data['name']
    if 'strand_id' in data:
        strand = optional_reference(Strand, data.get('strand_id'), 'Strand not found')
        semester.strand_id = strand.id if strand else None
    if 'year_level_id' in data:
        level = optional_reference(YearLevel, data.get('year_level_id'), 'Year level not found')
        semester.year_level_id = level.id if level else None
    for field in ('start_date', 'end_date'):
        if field in data:
            value = parse_date(data.get(field))
            if value is None:
                raise InvalidArgument(f'{field} must be a date in YYYY-MM-DD format')
            setattr(semester, field, value)
    if semester.start_date and semester.end_date and semester.end_date < semester.start_date:
        raise InvalidArgument('end_date must not be before start_date')

@bp.route('/semesters')
@role_required(*ADMIN_ROLES)
def semesters():
    active = Semester.query.filter(Semester.archived_at.is_(None)).order_by(Semester.start_date).all()
    return jsonify([semester.to_dict() for semester in active])

@bp.route('/semesters', methods=['POST'])
@role_required(*ADMIN_ROLES)
def add_semester():
    data = json_body()
    require_fields(data, 'name', 'start_date', 'end_date')
    semester = Semester(name=data['name'])
    apply_semester(semester, data)
    db.session.add(semester)
    db.session.commit()
    return jsonify(semester.to_dict()), 201

@bp.route('/semesters/<int:semester_id>', methods=['PUT'])
@role_required(*ADMIN_ROLES)
def edit_semester(semester_id):
    semester = get_or_404(Semester, semester_id, 'Semester not found')
    apply_semester(semester, json_body())
    db.session.commit()
    return jsonify(semester.to_dict())

@bp.route('/archived-semesters')
@role_required(*ADMIN_ROLES)
def archived_semesters():
    archived = Semester.query.filter(Semester.archived_at.isnot(None))\
        .order_by(Semester.archived_at.desc()).all()
    return jsonify([semester.to_dict() for semester in archived])

@bp.route('/semesters/archive', methods=['POST'])
@role_required(*ADMIN_ROLES)
def archive_semesters():
    archived = archive_ended_semesters()
    return jsonify({
        'success': True,
        'archived': [semester.to_dict() for semester in archived]
    })

# Student import / export

def allowed_import_file(filename):
    return '.' in filename and \
        filename.rsplit('.', 1)[1].lower() in current_app.config['ALLOWED_IMPORT_EXTENSIONS']

@bp.route('/students/import', methods=['POST'])
@role_required(*ADMIN_ROLES)
def import_students_file():
    file = request.files.get('file')
    if not file or not file.filename:
        raise InvalidArgument('No file uploaded')
    if not allowed_import_file(file.filename):
        raise InvalidArgument('Only .xlsx files can be imported')

    report = import_students(file.stream, default_password=current_app.config.get('DEFAULT_STUDENT_PASSWORD'))
    return jsonify(report.to_dict())

@bp.route('/students/export')
@role_required(*ADMIN_ROLES)
def export_students():
    students = Student.query.join(User, Student.user_id == User.id).order_by(User.full_name).all()
    output = export_students_to_excel(students)
    return send_file(
        output,
        as_attachment=True,
        download_name='students.xlsx',
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
