from registrar import db
from registrar.utils.helpers import school_now

class Student(db.Model):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    lrn = db.Column(db.String(20), unique=True)
    birthdate = db.Column(db.Date)
    gender = db.Column(db.String(10))
    address = db.Column(db.Text)
    guardian_name = db.Column(db.String(150))
    guardian_contact = db.Column(db.String(20))
    section_id = db.Column(db.Integer, db.ForeignKey('sections.id', ondelete='SET NULL'), nullable=True, index=True)
    year_level_id = db.Column(db.Integer, db.ForeignKey('year_levels.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=school_now)

    user = db.relationship('User', backref=db.backref('student_profile', uselist=False), foreign_keys=[user_id])
    section = db.relationship('Section')
    year_level = db.relationship('YearLevel', back_populates='students')
    grades = db.relationship('GradeEntry', back_populates='student', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.user_id,
            'profile_id': self.id,
            'username': self.user.username,
            'full_name': self.user.full_name,
            'lrn': self.lrn,
            'birthdate': self.birthdate.isoformat() if self.birthdate else None,
            'gender': self.gender,
            'address': self.address,
            'guardian_name': self.guardian_name,
            'guardian_contact': self.guardian_contact,
            'section_id': self.section_id,
            'year_level_id': self.year_level_id,
            'strand_id': self.user.strand_id
        }

    def __repr__(self):
        return f'<Student {self.lrn}>'
