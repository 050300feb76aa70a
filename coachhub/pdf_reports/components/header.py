from reportlab.lib import colors
from reportlab.lib.units import inch
from coachhub.config.settings import ReportConfig
from coachhub.pdf_reports.components.styles import BRAND_COLOR, GRID_COLOR

def draw_header(canvas, doc, title="Student Progress Report"):
    header_height = 0.5 * inch
    x = doc.leftMargin
    y = doc.height + doc.bottomMargin - header_height

    # shadow
    canvas.saveState()
    canvas.setFillColor(colors.black)
    canvas.setFillAlpha(0.1)
    canvas.roundRect(x + 1, y - 1, doc.width, header_height, 5, fill=1, stroke=0)
    canvas.restoreState()

    canvas.setFillColor(colors.white)
    canvas.roundRect(x, y, doc.width, header_height, 5, fill=1, stroke=0)

    canvas.setFont("Helvetica-Bold", 15)
    text_y = y + (header_height - 15) / 2 + 2
    canvas.setFillColor(BRAND_COLOR)
    canvas.drawString(x + 6, text_y, ReportConfig.BRAND_NAME)
    canvas.drawRightString(x + doc.width - 6, text_y, title)

def draw_footer(canvas, doc, student_name):
    y = doc.bottomMargin / 2
    canvas.saveState()
    canvas.setStrokeColor(GRID_COLOR)
    canvas.line(doc.leftMargin, y + 10, doc.leftMargin + doc.width, y + 10)
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.grey)
    canvas.drawString(doc.leftMargin, y, student_name)
    canvas.drawRightString(doc.leftMargin + doc.width, y, f"Page {canvas.getPageNumber()}")
    canvas.restoreState()
