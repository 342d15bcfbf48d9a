import re
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter
from io import BytesIO

INVALID_TITLE_CHARS = re.compile(r"[\\/*?:\[\]]")


def sheet_title(title):
    return INVALID_TITLE_CHARS.sub("-", title)[:31] or "Sheet"


def create_styled_workbook(title, headers, data, column_widths=None):
    wb = Workbook()
    ws = wb.active
    # sheet titles are capped at 31 characters and cannot hold \ / * ? : [ ]
    ws.title = sheet_title(title)

    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(name='Arial', size=12, bold=True, color="FFFFFF")
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

    data_font = Font(name='Arial', size=11)
    data_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num)
        cell.value = header
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = header_alignment
        cell.border = thin_border

    row_colors = [
        PatternFill(start_color="FFFFFF", end_color="FFFFFF", fill_type="solid"),
        PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
    ]

    for row_num, row_data in enumerate(data, 2):
        fill_color = row_colors[(row_num - 2) % 2]
        for col_num, value in enumerate(row_data, 1):
            cell = ws.cell(row=row_num, column=col_num)
            cell.value = value
            cell.font = data_font
            cell.alignment = data_alignment
            cell.border = thin_border
            cell.fill = fill_color

    if column_widths:
        for col_num, width in enumerate(column_widths, 1):
            ws.column_dimensions[get_column_letter(col_num)].width = width
    else:
        for col_num in range(1, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col_num)].width = 20

    ws.freeze_panes = 'A2'

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    return output


def export_students_to_excel(students):
    title = "Students"

    headers = [
        "LRN",
        "Username",
        "Full Name",
        "Strand",
        "Year Level",
        "Section",
        "Guardian",
        "Guardian Contact",
        "Status"
    ]

    data = []
    for student in students:
        user = student.user
        status_display = "Active" if user.is_active else "Inactive"

        data.append([
            student.lrn or "",
            user.username,
            user.full_name,
            user.strand.name if user.strand else "",
            student.year_level.name if student.year_level else "",
            student.section.name if student.section else "",
            student.guardian_name or "",
            student.guardian_contact or "",
            status_display
        ])

    column_widths = [16, 18, 28, 15, 14, 15, 22, 16, 12]

    return create_styled_workbook(title, headers, data, column_widths)


def export_subject_grades_to_excel(subject, semester, students, grades):
    """students is a list of student accounts, grades maps account id to score fields"""
    title = f"{subject.name} - {semester.name}"

    headers = [
        "Student",
        "Midterm",
        "Finals",
        "Final Rating",
        "Action"
    ]

    data = []
    for user in students:
        scores = grades.get(user.id, {})
        final_rating = scores.get('finalRating')

        data.append([
            user.full_name,
            scores.get('midterm') if scores.get('midterm') is not None else "",
            scores.get('finals') if scores.get('finals') is not None else "",
            round(final_rating, 2) if final_rating is not None else "",
            scores.get('action') or ""
        ])

    column_widths = [30, 12, 12, 14, 12]

    return create_styled_workbook(title, headers, data, column_widths)
