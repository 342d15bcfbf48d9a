"""Bulk student account import from an .xlsx workbook.

Rows that cannot be imported are reported individually as ImportRowSkipped
instead of being dropped. Blank rows are ignored.
"""
import logging
import zipfile
from collections import namedtuple
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from registrar import db
from registrar.models import User, Student, Section, Strand
from registrar.utils.errors import InvalidArgument

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('username', 'full_name', 'password')
OPTIONAL_COLUMNS = ('lrn', 'section', 'strand')

MISSING_FIELD = 'missing_field'
DUPLICATE_USERNAME = 'duplicate_username'
DUPLICATE_LRN = 'duplicate_lrn'
UNKNOWN_SECTION = 'unknown_section'
UNKNOWN_STRAND = 'unknown_strand'

ImportRowSkipped = namedtuple('ImportRowSkipped', ['row_number', 'reason', 'detail'])


class ImportReport:
    def __init__(self):
        self.created = []
        self.skipped = []

    def skip(self, row_number, reason, detail=''):
        self.skipped.append(ImportRowSkipped(row_number, reason, detail))

    def to_dict(self):
        return {
            'success': True,
            'created': len(self.created),
            'created_usernames': [user.username for user in self.created],
            'skipped': [row._asdict() for row in self.skipped]
        }


def cell_text(value):
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def read_rows(file_storage):
    try:
        wb = load_workbook(file_storage, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise InvalidArgument(f'Could not read workbook: {e}')

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            raise InvalidArgument('Workbook is empty')

        columns = [cell_text(name).lower() for name in header]
        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise InvalidArgument(f"Missing columns: {', '.join(missing)}")

        for row_number, values in enumerate(rows, 2):
            record = {}
            for index, name in enumerate(columns):
                if name in REQUIRED_COLUMNS or name in OPTIONAL_COLUMNS:
                    record[name] = cell_text(values[index]) if index < len(values) else ''
            yield row_number, record
    finally:
        wb.close()


def import_students(file_storage, default_password=None):
    report = ImportReport()
    seen_usernames = set()
    seen_lrns = set()

    for row_number, record in read_rows(file_storage):
        if not any(record.values()):
            continue

        if not record.get('password') and default_password:
            record['password'] = default_password

        missing = [name for name in REQUIRED_COLUMNS if not record.get(name)]
        if missing:
            report.skip(row_number, MISSING_FIELD, ', '.join(missing))
            continue

        username = record['username']
        if username in seen_usernames or User.query.filter_by(username=username).first():
            report.skip(row_number, DUPLICATE_USERNAME, username)
            continue

        lrn = record.get('lrn') or None
        if lrn and (lrn in seen_lrns or Student.query.filter_by(lrn=lrn).first()):
            report.skip(row_number, DUPLICATE_LRN, lrn)
            continue

        section = None
        if record.get('section'):
            section = Section.query.filter_by(name=record['section']).order_by(Section.id).first()
            if not section:
                report.skip(row_number, UNKNOWN_SECTION, record['section'])
                continue

        strand = None
        if record.get('strand'):
            strand = Strand.query.filter_by(name=record['strand']).first()
            if not strand:
                report.skip(row_number, UNKNOWN_STRAND, record['strand'])
                continue

        user = User(
            username=username,
            full_name=record['full_name'],
            role='student',
            is_active=True,
            strand_id=strand.id if strand else (section.strand_id if section else None)
        )
        user.set_password(record['password'])
        db.session.add(user)
        db.session.flush()

        db.session.add(Student(
            user_id=user.id,
            lrn=lrn,
            section_id=section.id if section else None,
            year_level_id=section.year_level_id if section else None
        ))

        seen_usernames.add(username)
        if lrn:
            seen_lrns.add(lrn)
        report.created.append(user)

    db.session.commit()
    logger.info(f"Student import finished: {len(report.created)} created, {len(report.skipped)} skipped")
    for skipped in report.skipped:
        logger.info(f"Import row {skipped.row_number} skipped: {skipped.reason} {skipped.detail}")

    return report
