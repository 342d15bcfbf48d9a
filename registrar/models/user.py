from registrar import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from registrar.utils.helpers import school_now

ROLES = ('student', 'teacher', 'admin', 'superadmin')

user_subjects = db.Table(
    'user_subjects',
    db.Column('user_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    db.Column('subject_id', db.Integer, db.ForeignKey('subjects.id', ondelete='CASCADE'), primary_key=True)
)

class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(150), nullable=False, default='')
    role = db.Column(db.String(20), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    strand_id = db.Column(db.Integer, db.ForeignKey('strands.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=school_now)
    updated_at = db.Column(db.DateTime, default=school_now, onupdate=school_now)

    strand = db.relationship('Strand', backref='users')
    subjects = db.relationship('Subject', secondary=user_subjects, backref='users', lazy='dynamic')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def is_super_admin(self):
        return self.role == 'superadmin'

    @property
    def sections(self):
        """Sections of the account, derived from the section and profile records"""
        from registrar.models.section import Section
        if self.role == 'student':
            profile = self.student_profile
            if profile and profile.section:
                return [profile.section]
            return []
        if self.role == 'teacher':
            return Section.query.filter(
                db.or_(Section.teacher_id == self.id, Section.adviser_id == self.id)
            ).order_by(Section.name).all()
        return []

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'full_name': self.full_name,
            'role': self.role,
            'is_active': self.is_active,
            'strand_id': self.strand_id,
            'sections': [section.id for section in self.sections],
            'subjects': [subject.id for subject in self.subjects]
        }

    def __repr__(self):
        return f'<User {self.username}>'
