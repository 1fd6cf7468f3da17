"""
Prescription PDF rendering.

Builds a single printable document: clinic header, doctor and patient
blocks, diagnosis, the medication table, instructions and follow-up date.
"""

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from clinic.core.config import settings
from clinic.domain.prescriptions.models import Prescription

MEDICATION_COLUMNS = ("Medicine", "Dosage", "Frequency", "Duration", "Instructions")


def _text(value) -> str:
    return escape(str(value)) if value not in (None, "") else "-"


def _person(profile) -> str:
    user = getattr(profile, "user", None)
    return f"{user.first_name} {user.last_name}" if user else "-"


def render_prescription_pdf(prescription: Prescription) -> bytes:
    """Render ``prescription`` (patient and doctor populated) to PDF bytes"""
    buffer = BytesIO()
    document = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"Prescription {prescription.prescription_number}",
    )
    styles = getSampleStyleSheet()
    heading = styles["Heading3"]
    body = styles["BodyText"]

    story = [
        Paragraph(_text(settings.CLINIC_NAME), styles["Title"]),
        Paragraph("MEDICAL PRESCRIPTION", styles["Heading2"]),
        Spacer(1, 4 * mm),
        Paragraph(f"Prescription No: {_text(prescription.prescription_number)}", body),
        Paragraph(f"Date: {_text(prescription.prescription_date.strftime('%Y-%m-%d') if prescription.prescription_date else None)}", body),
        Spacer(1, 4 * mm),
        Paragraph("Doctor Information", heading),
        Paragraph(f"Name: Dr. {_text(_person(prescription.doctor))}", body),
        Paragraph(f"Specialization: {_text(getattr(prescription.doctor, 'specialization', None))}", body),
        Paragraph(f"License: {_text(getattr(prescription.doctor, 'license_number', None))}", body),
        Spacer(1, 4 * mm),
        Paragraph("Patient Information", heading),
        Paragraph(f"Name: {_text(_person(prescription.patient))}", body),
    ]

    patient_user = getattr(prescription.patient, "user", None)
    if patient_user is not None:
        story.append(Paragraph(f"Email: {_text(patient_user.email)}", body))
        story.append(Paragraph(f"Phone: {_text(patient_user.phone)}", body))

    story += [
        Spacer(1, 4 * mm),
        Paragraph("Diagnosis", heading),
        Paragraph(_text(prescription.diagnosis), body),
    ]

    medications = prescription.medications or []
    if medications:
        rows = [list(MEDICATION_COLUMNS)]
        for item in medications:
            rows.append([
                Paragraph(_text(item.get("name")), body),
                Paragraph(_text(item.get("dosage")), body),
                Paragraph(_text(item.get("frequency")), body),
                Paragraph(_text(item.get("duration")), body),
                Paragraph(_text(item.get("instructions")), body),
            ])
        table = Table(rows, repeatRows=1, hAlign="LEFT")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        story += [Spacer(1, 4 * mm), Paragraph("Medications", heading), table]

    if prescription.instructions:
        story += [Spacer(1, 4 * mm), Paragraph("Instructions", heading),
                  Paragraph(_text(prescription.instructions), body)]

    if prescription.follow_up_date:
        story += [Spacer(1, 4 * mm), Paragraph("Follow-up Date", heading),
                  Paragraph(prescription.follow_up_date.isoformat(), body)]

    story += [
        Spacer(1, 10 * mm),
        Paragraph(
            "This prescription is digitally generated and signed by the prescribing doctor.",
            styles["Italic"],
        ),
    ]

    document.build(story)
    return buffer.getvalue()
