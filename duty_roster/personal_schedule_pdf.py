from io import BytesIO
from typing import List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from duty_roster.domain.formatting import format_date
from duty_roster.domain.personal_schedule import (
    COOKING_HEADERS,
    MEDITATION_HEADERS,
    WORK_DUTY_HEADERS,
)
from duty_roster.models.dc_models import PersonalScheduleModel

ORGANIZATION_NAME = "YOUTH WITH A MISSION"
TITLE = "Personal Weekly Participation Schedule"

GRID_STYLE = TableStyle(
    [
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
)


def _section(title: str, headers: List[str], rows: List[List[str]], styles) -> list:
    table = Table([headers] + rows, repeatRows=1, hAlign="LEFT")
    table.setStyle(GRID_STYLE)
    return [Paragraph(title, styles["Heading3"]), table, Spacer(1, 6 * mm)]


def render_personal_schedule_pdf(schedule: PersonalScheduleModel) -> bytes:
    """Render a personal schedule as a landscape A4 PDF

    Args:
        schedule (PersonalScheduleModel): Rows built by build_personal_schedule

    Returns:
        bytes: The PDF document
    """
    buffer = BytesIO()
    document = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        title=f"{TITLE} - {schedule.user_name}",
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
    )
    styles = getSampleStyleSheet()

    story = [
        Paragraph(ORGANIZATION_NAME, styles["Title"]),
        Paragraph(TITLE, styles["Heading2"]),
        Paragraph(f"For: {schedule.user_name}", styles["Normal"]),
        Paragraph(
            f"Week: {format_date(schedule.week_start)} - {format_date(schedule.week_end)}",
            styles["Normal"],
        ),
        Spacer(1, 6 * mm),
    ]
    story += _section("Meditation", MEDITATION_HEADERS, schedule.meditation_rows, styles)
    story += _section("Cooking", COOKING_HEADERS, schedule.cooking_rows, styles)
    story += _section("Work Duties", WORK_DUTY_HEADERS, schedule.work_duty_rows, styles)

    document.build(story)
    return buffer.getvalue()
