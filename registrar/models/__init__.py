from registrar.models.user import User
from registrar.models.strand import Strand
from registrar.models.section import YearLevel, Section
from registrar.models.semester import Semester
from registrar.models.subject import Subject
from registrar.models.student import Student
from registrar.models.grade import GradeEntry

__all__ = [
    'User', 'Strand', 'YearLevel', 'Section', 'Semester',
    'Subject', 'Student', 'GradeEntry'
]
