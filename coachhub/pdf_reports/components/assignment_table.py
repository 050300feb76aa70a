from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import Table, TableStyle, Paragraph, Spacer
from coachhub.pdf_reports.components.styles import get_styles, BRAND_COLOR, GRID_COLOR, STRIPE_COLOR
from coachhub.pdf_reports.components.student_info import format_day

def create_assignment_table(report_data):
    """Recent assignments with status and grade"""
    styles = get_styles()
    assignments = report_data.get("recentAssignments") or []
    story = [Paragraph("Recent Assignments", styles['SectionTitle'])]

    if not assignments:
        story.append(Paragraph("No assignments in this period.", styles['InfoValue']))
        story.append(Spacer(1, 0.2 * inch))
        return story

    data = [[
        Paragraph(c, styles["TableHeader"])
        for c in ("Assignment", "Subject", "Due Date", "Submitted", "Status", "Grade")
    ]]
    for a in assignments:
        grade = a.get("grade")
        data.append([
            Paragraph(escape(a.get("title", "")), styles["TableBodyLeft"]),
            Paragraph(escape(a.get("subject", "General")), styles["TableBodyLeft"]),
            format_day(a.get("dueDate")),
            format_day(a.get("submittedAt")),
            Paragraph(str(a.get("status", "pending")).replace("_", " "), styles["CellCenter"]),
            f"{grade}/{a.get('maxGrade') or 100}" if grade is not None else "-"
        ])

    table = Table(data, colWidths=[2.1 * inch, 1.2 * inch, 1.0 * inch, 1.0 * inch, 1.0 * inch, 0.9 * inch])
    style = TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('GRID', (0, 0), (-1, -1), 1, GRID_COLOR),
        ('ALIGN', (2, 1), (-1, -1), 'CENTER'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ])
    for r in range(2, len(data), 2):
        style.add('BACKGROUND', (0, r), (-1, r), STRIPE_COLOR)
    table.setStyle(style)
    story.append(table)
    story.append(Spacer(1, 0.2 * inch))
    return story
