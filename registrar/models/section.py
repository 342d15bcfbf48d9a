from registrar import db
from registrar.utils.helpers import school_now

class YearLevel(db.Model):
    __tablename__ = 'year_levels'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)
    display_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=school_now)

    sections = db.relationship('Section', back_populates='year_level', lazy='dynamic')
    students = db.relationship('Student', back_populates='year_level', lazy='dynamic')
    semesters = db.relationship('Semester', back_populates='year_level', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'display_order': self.display_order
        }

    def __repr__(self):
        return f'<YearLevel {self.name}>'

class Section(db.Model):
    __tablename__ = 'sections'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    adviser_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    strand_id = db.Column(db.Integer, db.ForeignKey('strands.id', ondelete='SET NULL'), nullable=True)
    year_level_id = db.Column(db.Integer, db.ForeignKey('year_levels.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=school_now)

    teacher = db.relationship('User', foreign_keys=[teacher_id], backref='taught_sections')
    adviser = db.relationship('User', foreign_keys=[adviser_id], backref='advised_sections')
    strand = db.relationship('Strand', back_populates='sections')
    year_level = db.relationship('YearLevel', back_populates='sections')
    # membership is owned by Student.section_id
    students = db.relationship('Student', lazy='dynamic', viewonly=True)

    __table_args__ = (db.UniqueConstraint('name', 'year_level_id', name='unique_section_per_year_level'),)

    def enrolled_count(self):
        return self.students.count()

    def to_dict(self, include_students=False):
        data = {
            'id': self.id,
            'name': self.name,
            'teacher_id': self.teacher_id,
            'adviser_id': self.adviser_id,
            'strand_id': self.strand_id,
            'year_level_id': self.year_level_id,
            'enrolled_count': self.enrolled_count()
        }
        if include_students:
            data['students'] = [student.to_dict() for student in self.students]
        return data

    def __repr__(self):
        return f'<Section {self.name}>'
