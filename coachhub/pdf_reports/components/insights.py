from xml.sax.saxutils import escape
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, Spacer
from coachhub.pdf_reports.components.styles import get_styles
from coachhub.pdf_reports.components.student_info import format_day

def _bullets(items, styles):
    return [Paragraph(f"&bull; {escape(str(item))}", styles['BulletItem']) for item in items]

def create_goals_section(report_data):
    styles = get_styles()
    goals = report_data.get("goals") or []
    story = [Paragraph("Goals", styles['SectionTitle'])]
    if not goals:
        story.append(Paragraph("No goals in this period.", styles['InfoValue']))
    else:
        story.extend(_bullets([
            f"{g.get('title', '')} - {str(g.get('status', 'pending')).replace('_', ' ')}, "
            f"{g.get('progress', 0)}% (target {format_day(g.get('targetDate'))})"
            for g in goals
        ], styles))
    story.append(Spacer(1, 0.2 * inch))
    return story

def create_insights_section(report_data):
    """Strengths, improvement areas and recommendations"""
    styles = get_styles()
    insights = report_data.get("insights") or {}
    story = []
    for key, title in (("strengths", "Strengths"),
                       ("areasForImprovement", "Areas for Improvement"),
                       ("recommendations", "Recommendations")):
        items = insights.get(key) or []
        if not items:
            continue
        story.append(Paragraph(title, styles['SectionTitle']))
        story.extend(_bullets(items, styles))
        story.append(Spacer(1, 0.15 * inch))
    return story
