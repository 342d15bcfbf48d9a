from registrar import db
from registrar.utils.helpers import school_now

GRADE_TYPES = ('midterm', 'finals')
PASSING_RATING = 75
PASSED = 'PASSED'
FAILED = 'FAILED'


def compute_final_rating(midterm, finals):
    if midterm is None or finals is None:
        return None
    return (midterm + finals) / 2


def compute_action(final_rating):
    if final_rating is None:
        return None
    return PASSED if final_rating >= PASSING_RATING else FAILED


class GradeEntry(db.Model):
    """One (student, semester, subject) row of a student's grade ledger.

    finalRating and action are derived from midterm and finals on read and
    are never stored. version_id guards against lost updates when two
    requests modify the same row.
    """
    __tablename__ = 'grade_entries'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), nullable=False, index=True)
    semester_id = db.Column(db.Integer, db.ForeignKey('semesters.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subjects.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    midterm = db.Column(db.Float, nullable=True)
    finals = db.Column(db.Float, nullable=True)
    version_id = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=school_now)
    updated_at = db.Column(db.DateTime, default=school_now, onupdate=school_now)

    student = db.relationship('Student', back_populates='grades')
    semester = db.relationship('Semester')
    subject = db.relationship('Subject')
    teacher = db.relationship('User')

    __table_args__ = (
        db.UniqueConstraint('student_id', 'semester_id', 'subject_id', name='unique_grade_entry'),
    )
    __mapper_args__ = {'version_id_col': version_id}

    @property
    def final_rating(self):
        return compute_final_rating(self.midterm, self.finals)

    @property
    def action(self):
        return compute_action(self.final_rating)

    def scores(self):
        return {
            'midterm': self.midterm,
            'finals': self.finals,
            'finalRating': self.final_rating,
            'action': self.action
        }

    def to_dict(self):
        data = {
            'id': self.id,
            'studentId': self.student.user_id if self.student else None,
            'semesterId': self.semester_id,
            'subjectId': self.subject_id,
            'subject': self.subject.name if self.subject else None,
            'semester': self.semester.name if self.semester else None
        }
        data.update(self.scores())
        return data

    def __repr__(self):
        return f'<GradeEntry student:{self.student_id} semester:{self.semester_id} subject:{self.subject_id}>'
