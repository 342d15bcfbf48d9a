from registrar import db
from registrar.utils.helpers import school_now

class Subject(db.Model):
    __tablename__ = 'subjects'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    code = db.Column(db.String(30), unique=True)
    description = db.Column(db.Text)
    strand_id = db.Column(db.Integer, db.ForeignKey('strands.id', ondelete='SET NULL'), nullable=True)
    semester_id = db.Column(db.Integer, db.ForeignKey('semesters.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=school_now)
    updated_at = db.Column(db.DateTime, default=school_now, onupdate=school_now)

    strand = db.relationship('Strand', back_populates='subjects')
    semester = db.relationship('Semester', back_populates='subjects')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'description': self.description,
            'strand_id': self.strand_id,
            'semester_id': self.semester_id
        }

    def __repr__(self):
        return f'<Subject {self.name}>'
