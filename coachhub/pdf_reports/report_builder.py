"""
Student progress report PDF, built in memory.

Each section is laid out with ReportLab on its own document (own header title,
own page numbering) and the rendered sections are stitched with PdfMerger.
"""
import io
from typing import Callable, List, Tuple

from reportlab.lib.pagesizes import letter
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer
from PyPDF2 import PdfMerger

from coachhub.pdf_reports.components.header import draw_header, draw_footer
from coachhub.pdf_reports.components.student_info import create_student_info_section
from coachhub.pdf_reports.components.performance_summary import create_performance_summary
from coachhub.pdf_reports.components.assignment_table import create_assignment_table
from coachhub.pdf_reports.components.insights import create_goals_section, create_insights_section
from coachhub.pdf_reports.components.styles import get_styles

MARGINS = {"leftMargin": 0.4 * inch, "rightMargin": 0.4 * inch, "topMargin": 0.3 * inch, "bottomMargin": 0.5 * inch}

Flowables = List
SectionPart = Callable[[dict], Flowables]


def _limited_data_notice(report_data: dict) -> Flowables:
    if not report_data.get("error"):
        return []
    return [Paragraph("Report generated with limited data", get_styles()['CenteredTitle']), Spacer(1, 0.09 * inch)]


def _top_gap(_report_data: dict) -> Flowables:
    return [Spacer(1, 0.7 * inch)]


SECTIONS: List[Tuple[str, List[SectionPart]]] = [
    ("Student Progress Report", [
        create_student_info_section, _limited_data_notice, create_performance_summary, create_assignment_table
    ]),
    ("Goals & Insights", [_top_gap, create_goals_section, create_insights_section]),
]


def _render_section(story: Flowables, title: str, student_name: str) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter, title=f"{title} - {student_name}", **MARGINS)

    def _decorate(canvas, doc_obj):
        draw_header(canvas, doc_obj, title)
        draw_footer(canvas, doc_obj, student_name)

    doc.build(story, onFirstPage=_decorate, onLaterPages=_decorate)
    return buffer.getvalue()


def create_student_report(report_data: dict) -> bytes:
    """Render every section in SECTIONS for one student's report data and return the merged PDF."""
    student_name = (report_data.get("student") or {}).get("name") or "Student"
    merger = PdfMerger()
    try:
        for title, parts in SECTIONS:
            story: Flowables = []
            for part in parts:
                story.extend(part(report_data))
            merger.append(io.BytesIO(_render_section(story, title, student_name)))

        output = io.BytesIO()
        merger.write(output)
        return output.getvalue()
    finally:
        merger.close()
