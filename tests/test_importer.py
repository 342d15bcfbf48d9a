from io import BytesIO

import pytest
from openpyxl import Workbook

from registrar.models import User
from registrar.utils.errors import InvalidArgument
from registrar.utils.importer import (
    import_students, MISSING_FIELD, DUPLICATE_USERNAME, DUPLICATE_LRN, UNKNOWN_SECTION, UNKNOWN_STRAND
)

HEADER = ['Username', 'Full_Name', 'Password', 'LRN', 'Section', 'Strand']


def workbook_file(rows, header=HEADER):
    wb = Workbook()
    ws = wb.active
    ws.append(header)
    for row in rows:
        ws.append(row)
    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def test_import_creates_students_and_reports_skips(seed, db_ctx):
    upload = workbook_file([
        ['rosa', 'Rosa Clara', 'pw', 200000000001, 'Einstein', 'STEM'],
        ['juan', 'Another Juan', 'pw', '', '', ''],
        ['lito', 'Lito Lapid', '', '', '', ''],
        ['dina', 'Dina Bonnevie', 'pw', '100000000001', '', ''],
        ['nora', 'Nora Aunor', 'pw', '', 'Darwin', ''],
        ['vilma', 'Vilma Santos', 'pw', '', '', 'HUMSS'],
        ['rosa', 'Rosa Again', 'pw', '', '', ''],
        ['tito', 'Tito Sotto', 'pw', '200000000001', '', ''],
    ])

    report = import_students(upload)

    assert [user.username for user in report.created] == ['rosa']
    assert [(row.row_number, row.reason) for row in report.skipped] == [
        (3, DUPLICATE_USERNAME),
        (4, MISSING_FIELD),
        (5, DUPLICATE_LRN),
        (6, UNKNOWN_SECTION),
        (7, UNKNOWN_STRAND),
        (8, DUPLICATE_USERNAME),
        (9, DUPLICATE_LRN),
    ]

    rosa = User.query.filter_by(username='rosa').first()
    assert rosa.role == 'student'
    assert rosa.check_password('pw')
    assert rosa.student_profile.lrn == '200000000001'
    assert rosa.student_profile.section_id == seed['section_a']
    assert rosa.student_profile.year_level_id == seed['grade11']
    assert rosa.strand.name == 'STEM'


def test_import_uses_default_password(seed, db_ctx):
    upload = workbook_file([['lito', 'Lito Lapid', '', '', '', '']])

    report = import_students(upload, default_password='changeme')

    assert report.skipped == []
    assert User.query.filter_by(username='lito').first().check_password('changeme')


def test_blank_rows_are_ignored(seed, db_ctx):
    upload = workbook_file([
        ['lito', 'Lito Lapid', 'pw', '', '', ''],
        ['', '', '', '', '', ''],
    ])

    report = import_students(upload)

    assert len(report.created) == 1
    assert report.skipped == []


def test_report_payload(seed, db_ctx):
    upload = workbook_file([['juan', 'Juan', 'pw', '', '', '']])

    payload = import_students(upload).to_dict()

    assert payload == {
        'success': True,
        'created': 0,
        'created_usernames': [],
        'skipped': [{'row_number': 2, 'reason': DUPLICATE_USERNAME, 'detail': 'juan'}]
    }


def test_missing_required_column(seed, db_ctx):
    upload = workbook_file([['lito', 'pw']], header=['username', 'password'])

    with pytest.raises(InvalidArgument, match='full_name'):
        import_students(upload)


def test_unreadable_workbook(seed, db_ctx):
    with pytest.raises(InvalidArgument):
        import_students(BytesIO(b'not a workbook'))
