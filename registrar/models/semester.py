from registrar import db
from registrar.utils.helpers import school_now

class Semester(db.Model):
    __tablename__ = 'semesters'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    strand_id = db.Column(db.Integer, db.ForeignKey('strands.id', ondelete='SET NULL'), nullable=True)
    year_level_id = db.Column(db.Integer, db.ForeignKey('year_levels.id', ondelete='SET NULL'), nullable=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    archived_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=school_now)

    strand = db.relationship('Strand', back_populates='semesters')
    year_level = db.relationship('YearLevel', back_populates='semesters')
    subjects = db.relationship('Subject', back_populates='semester', lazy='dynamic')

    @property
    def is_archived(self):
        return self.archived_at is not None

    def archive(self):
        if not self.is_archived:
            self.archived_at = school_now()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'strand': {'id': self.strand.id, 'name': self.strand.name} if self.strand else None,
            'year_level': {'id': self.year_level.id, 'name': self.year_level.name} if self.year_level else None,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'archived_at': self.archived_at.isoformat() if self.archived_at else None
        }

    def __repr__(self):
        return f'<Semester {self.name}>'
