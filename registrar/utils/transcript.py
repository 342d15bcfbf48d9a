"""Form 137 (learner's permanent academic record) rendering.

The renderer only formats a projection of the ledger; building the projection
is the caller's job (see build_projection). Every year level is laid out as
two semester tables, missing names and scores print as N/A.
"""
import logging
import os
from io import BytesIO
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, KeepTogether
from werkzeug.utils import secure_filename
from registrar.models.grade import compute_final_rating, compute_action
from registrar.utils.helpers import school_now

logger = logging.getLogger(__name__)

PLACEHOLDER = 'N/A'
SEMESTER_LABELS = ('1st Semester', '2nd Semester')
TABLE_HEADERS = ['Subject', 'Midterm', 'Finals', 'Final Rating', 'Action']
COLUMN_WIDTHS = [70 * mm, 25 * mm, 25 * mm, 28 * mm, 26 * mm]


def format_score(value, decimals=None):
    if value is None:
        return PLACEHOLDER
    if decimals is not None:
        return f'{value:.{decimals}f}'
    if float(value).is_integer():
        return str(int(value))
    return f'{value:.2f}'


def build_projection(student_user, entries, school_name='', school_address=''):
    profile = student_user.student_profile
    section = profile.section if profile else None
    year_level = profile.year_level if profile else None

    rows = []
    for entry in entries:
        semester = entry.semester
        rows.append({
            'semester_id': entry.semester_id,
            'semester_name': semester.name if semester else None,
            'semester_start': semester.start_date if semester else None,
            'year_level': semester.year_level.name if semester and semester.year_level else None,
            'subject': entry.subject.name if entry.subject else None,
            'midterm': entry.midterm,
            'finals': entry.finals
        })

    return {
        'school_name': school_name,
        'school_address': school_address,
        'student_name': student_user.full_name,
        'lrn': profile.lrn if profile else None,
        'strand': student_user.strand.name if student_user.strand else None,
        'section': section.name if section else None,
        'year_level': year_level.name if year_level else None,
        'rows': rows
    }


def group_rows(rows):
    """Groups rows by year level, then splits each year into its semesters by start date"""
    years = {}
    year_order = []
    for row in rows:
        key = row.get('year_level') or PLACEHOLDER
        if key not in years:
            years[key] = {}
            year_order.append(key)
        years[key].setdefault(row.get('semester_id'), []).append(row)

    grouped = []
    for key in year_order:
        semesters = sorted(
            years[key].values(),
            key=lambda semester_rows: (semester_rows[0].get('semester_start') is None,
                                       semester_rows[0].get('semester_start'))
        )
        tables = []
        for index, semester_rows in enumerate(semesters):
            if index < len(SEMESTER_LABELS):
                label = SEMESTER_LABELS[index]
            else:
                label = semester_rows[0].get('semester_name') or PLACEHOLDER
            tables.append((label, semester_rows))
        for index in range(len(tables), len(SEMESTER_LABELS)):
            tables.append((SEMESTER_LABELS[index], []))
        grouped.append((key, tables))
    return grouped


def general_average(rows):
    ratings = [compute_final_rating(row.get('midterm'), row.get('finals')) for row in rows]
    ratings = [rating for rating in ratings if rating is not None]
    if not ratings:
        return None
    return sum(ratings) / len(ratings)


def semester_table(rows):
    data = [TABLE_HEADERS]
    for row in rows:
        rating = compute_final_rating(row.get('midterm'), row.get('finals'))
        data.append([
            row.get('subject') or PLACEHOLDER,
            format_score(row.get('midterm')),
            format_score(row.get('finals')),
            format_score(rating, decimals=2),
            compute_action(rating) or PLACEHOLDER
        ])
    if not rows:
        data.append([PLACEHOLDER] * len(TABLE_HEADERS))

    average = general_average(rows)
    data.append(['General Average', '', '', format_score(average, decimals=2), compute_action(average) or ''])

    table = Table(data, colWidths=COLUMN_WIDTHS, repeatRows=1, hAlign='LEFT')
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#366092')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.HexColor('#9ca3af')),
        ('ALIGN', (1, 0), (-1, -1), 'CENTER'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('ROWBACKGROUNDS', (0, 1), (-1, -2), [colors.white, colors.HexColor('#f2f2f2')]),
    ]))
    return table


def render(projection):
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=15 * mm, rightMargin=15 * mm, topMargin=15 * mm, bottomMargin=15 * mm,
        title=f"Form 137 - {projection.get('student_name') or PLACEHOLDER}"
    )
    styles = getSampleStyleSheet()
    centered = ParagraphStyle('Centered', parent=styles['Normal'], alignment=1)
    title = ParagraphStyle('FormTitle', parent=styles['Heading2'], alignment=1)

    elements = []
    if projection.get('school_name'):
        elements.append(Paragraph(projection['school_name'], title))
    if projection.get('school_address'):
        elements.append(Paragraph(projection['school_address'], centered))
    elements.append(Paragraph("FORM 137 - LEARNER'S PERMANENT ACADEMIC RECORD", title))
    elements.append(Spacer(1, 6))

    info = Table([
        ['Name:', projection.get('student_name') or PLACEHOLDER, 'LRN:', projection.get('lrn') or PLACEHOLDER],
        ['Strand:', projection.get('strand') or PLACEHOLDER, 'Section:', projection.get('section') or PLACEHOLDER],
        ['Year Level:', projection.get('year_level') or PLACEHOLDER, 'Date:', school_now().strftime('%Y-%m-%d')],
    ], colWidths=[25 * mm, 65 * mm, 20 * mm, 60 * mm], hAlign='LEFT')
    info.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
    ]))
    elements.append(info)
    elements.append(Spacer(1, 10))

    grouped = group_rows(projection.get('rows') or [])
    if not grouped:
        grouped = [(PLACEHOLDER, [(label, []) for label in SEMESTER_LABELS])]

    for year_level, tables in grouped:
        elements.append(Paragraph(year_level, styles['Heading3']))
        for label, rows in tables:
            elements.append(KeepTogether([
                Paragraph(label, styles['Heading4']),
                semester_table(rows),
                Spacer(1, 8)
            ]))

    doc.build(elements)
    return buffer.getvalue()


def form137_filename(full_name):
    name = secure_filename(f"{full_name or 'student'}_Form137.pdf")
    return name or 'Form137.pdf'


def save_copy(pdf_bytes, full_name, folder):
    os.makedirs(folder, exist_ok=True)
    path = os.path.join(folder, form137_filename(full_name))
    with open(path, 'wb') as f:
        f.write(pdf_bytes)
    return path
