from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import Table, TableStyle, Paragraph, Spacer
from coachhub.pdf_reports.components.styles import get_styles, BRAND_COLOR, GRID_COLOR, STRIPE_COLOR

def create_performance_summary(report_data):
    """Performance percentages and assignment/goal counts side by side"""
    styles = get_styles()
    performance = report_data.get("performance") or {}
    statistics = report_data.get("statistics") or {}

    story = [Paragraph("Performance Summary", styles['SectionTitle'])]
    rows = [
        ("Overall performance", f"{performance.get('overallPerformance', 0)}%",
         "Total assignments", statistics.get('totalAssignments', 0)),
        ("Assignment completion", f"{performance.get('assignmentCompletion', 0)}%",
         "Submitted", statistics.get('submittedAssignments', 0)),
        ("Average grade", performance.get('averageGrade', 0),
         "Graded", statistics.get('gradedAssignments', 0)),
        ("Grading rate", f"{performance.get('gradingRate', 0)}%",
         "Pending", statistics.get('pendingAssignments', 0)),
        ("Goals progress", f"{performance.get('goalsProgress', 0)}%",
         "Goals completed", f"{statistics.get('completedGoals', 0)}/{statistics.get('totalGoals', 0)}"),
    ]
    data = [[Paragraph(c, styles["TableHeader"]) for c in ("Metric", "Value", "Count", "Value")]]
    data.extend([
        [Paragraph(label, styles["TableBodyLeft"]), str(value), Paragraph(count_label, styles["TableBodyLeft"]), str(count)]
        for label, value, count_label, count in rows
    ])

    table = Table(data, colWidths=[2.2 * inch, 1.3 * inch, 2.2 * inch, 1.3 * inch])
    style = TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
        ('GRID', (0, 0), (-1, -1), 1, GRID_COLOR),
        ('ALIGN', (1, 1), (1, -1), 'CENTER'),
        ('ALIGN', (3, 1), (3, -1), 'CENTER'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ])
    for r in range(2, len(data), 2):
        style.add('BACKGROUND', (0, r), (-1, r), STRIPE_COLOR)
    table.setStyle(style)
    story.append(table)

    subjects = report_data.get("subjects") or []
    if subjects:
        story.append(Spacer(1, 0.2 * inch))
        story.append(Paragraph("Subjects", styles['SectionTitle']))
        subject_data = [[
            Paragraph(c, styles["TableHeader"])
            for c in ("Subject", "Assignments", "Submitted", "Completion", "Average Grade")
        ]]
        for s in subjects:
            subject_data.append([
                Paragraph(escape(s.get("subject", "General")), styles["TableBodyLeft"]),
                s.get("totalAssignments", 0),
                s.get("submittedAssignments", 0),
                f"{s.get('completion', 0)}%",
                s.get("averageGrade", 0)
            ])
        subject_table = Table(subject_data, colWidths=[2.2 * inch, 1.2 * inch, 1.2 * inch, 1.2 * inch, 1.2 * inch])
        subject_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('GRID', (0, 0), (-1, -1), 1, GRID_COLOR),
            ('ALIGN', (1, 1), (-1, -1), 'CENTER'),
        ]))
        story.append(subject_table)

    story.append(Spacer(1, 0.2 * inch))
    return story
