"""Excel export of a school fee summary."""

import io

from openpyxl import Workbook
from openpyxl.styles import Font

from .schemas import SchoolFeeSummary

SUMMARY_SHEET_NAME = "Summary"
MONTHLY_SHEET_NAME = "Monthly collection"
STUDENTS_SHEET_NAME = "Students"

STUDENT_HEADERS = (
    "student_name",
    "student_email",
    "total_fees",
    "paid_fees",
    "pending_fees",
    "overdue_amount",
    "outstanding_amount",
    "payment_percentage",
    "total_records",
    "paid_records",
    "pending_records",
    "overdue_records",
)


def _bold_header(ws) -> None:
    for cell in ws[1]:
        cell.font = Font(bold=True)


def build_fee_summary_workbook(summary: SchoolFeeSummary, school_name: str) -> bytes:
    """Workbook with Summary, Monthly collection and Students sheets."""
    wb = Workbook()

    ws_summary = wb.active
    ws_summary.title = SUMMARY_SHEET_NAME
    ws_summary.append(["Fee Collection Report", school_name])
    ws_summary.append(["Generated on", summary.generated_on.isoformat()])
    ws_summary.append([])
    ws_summary.append(["Total amount", float(summary.total_amount)])
    ws_summary.append(["Collected amount", float(summary.collected_amount)])
    ws_summary.append(["Pending amount", float(summary.pending_amount)])
    ws_summary.append(["Overdue amount", float(summary.overdue_amount)])
    ws_summary.append(["Collection rate (%)", round(summary.collection_rate, 1)])
    ws_summary.append(["Total records", summary.total_records])
    ws_summary.append(["Paid records", summary.paid_records])
    ws_summary.append(["Pending records", summary.pending_records])
    ws_summary.append(["Overdue records", summary.overdue_records])
    ws_summary.append(["Students with fees", summary.students_with_fees])
    ws_summary.append(["Roster size", summary.roster_size])
    ws_summary.append(["Coverage rate (%)", round(summary.coverage_rate, 1)])
    ws_summary["A1"].font = Font(bold=True)

    ws_monthly = wb.create_sheet(MONTHLY_SHEET_NAME)
    ws_monthly.append(["month", "amount"])
    for month in summary.monthly_collection:
        ws_monthly.append([month.label, float(month.amount)])
    _bold_header(ws_monthly)

    ws_students = wb.create_sheet(STUDENTS_SHEET_NAME)
    ws_students.append(list(STUDENT_HEADERS))
    for s in summary.per_student:
        ws_students.append(
            [
                s.student_name,
                s.student_email,
                float(s.total_fees),
                float(s.paid_fees),
                float(s.pending_fees),
                float(s.overdue_amount),
                float(s.outstanding_amount),
                round(s.payment_percentage, 1),
                s.total_records,
                s.paid_records,
                s.pending_records,
                s.overdue_records,
            ]
        )
    _bold_header(ws_students)

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
