from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import Table, TableStyle, Paragraph, Spacer
from coachhub.pdf_reports.components.styles import get_styles

def format_day(value) -> str:
    """ISO timestamp to YYYY-MM-DD, '-' when missing"""
    return str(value)[:10] if value else "-"

def create_student_info_section(report_data):
    """Student, teacher and period block"""
    styles = get_styles()
    story = [Spacer(1, 0.7 * inch)]

    student = report_data.get("student") or {}
    teacher = report_data.get("teacher") or {}
    period = report_data.get("period") or {}

    info_rows = [
        ['Student', (student.get('name') or 'Unknown').strip()],
        ['Email', student.get('email') or '-'],
        ['Class', student.get('className') or '-'],
        ['Teacher', teacher.get('name') or '-'],
        ['Period', f"{format_day(period.get('startDate'))} to {format_day(period.get('endDate'))}"]
    ]

    info_table = Table(
        [[
            Paragraph(label, styles['InfoLabel']),
            Paragraph(':', styles['InfoLabel']),
            Paragraph(escape(value), styles['InfoValue'])
        ] for label, value in info_rows],
        colWidths=[1 * inch, 0.2 * inch, 4 * inch]
    )
    info_table.setStyle(TableStyle([
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ('RIGHTPADDING', (0, 0), (-1, -1), 0),
        ('TOPPADDING', (0, 0), (-1, -1), 2),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE')
    ]))
    info_table.hAlign = 'LEFT'
    story.append(info_table)
    story.append(Spacer(1, 0.3 * inch))

    divider = Table([['']], colWidths=[7.5 * inch])
    divider.setStyle(TableStyle([('LINEABOVE', (0, 0), (-1, -1), 1, colors.lightgrey)]))
    story.append(divider)
    story.append(Spacer(1, 0.09 * inch))
    return story
