from registrar import db
from registrar.utils.helpers import school_now

class Strand(db.Model):
    __tablename__ = 'strands'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=school_now)
    updated_at = db.Column(db.DateTime, default=school_now, onupdate=school_now)

    sections = db.relationship('Section', back_populates='strand', lazy='dynamic')
    subjects = db.relationship('Subject', back_populates='strand', lazy='dynamic')
    semesters = db.relationship('Semester', back_populates='strand', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'sections': [{'id': s.id, 'name': s.name} for s in self.sections],
            'subjects': [{'id': s.id, 'name': s.name} for s in self.subjects]
        }

    def __repr__(self):
        return f'<Strand {self.name}>'
