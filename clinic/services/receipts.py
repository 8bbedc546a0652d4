"""PDF donation receipts rendered with reportlab."""
from io import BytesIO
from xml.sax.saxutils import escape

from django.conf import settings
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from clinic.models import Donation


def receipt_filename(donation: Donation) -> str:
    return f"receipt_{donation.receipt_number}.pdf"


def render_donation_receipt(donation: Donation) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=20 * mm, bottomMargin=20 * mm,
                            title=f"Donation Receipt {donation.receipt_number}")
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('ReceiptTitle', parent=styles['Heading1'], alignment=1, fontSize=18, spaceAfter=4)
    sub_style = ParagraphStyle('ReceiptSub', parent=styles['Normal'], alignment=1, textColor=colors.grey)
    normal = styles['Normal']

    story = [
        Paragraph(escape(settings.HOSPITAL_NAME), title_style),
    ]
    if settings.HOSPITAL_ADDRESS:
        story.append(Paragraph(escape(settings.HOSPITAL_ADDRESS), sub_style))
    story += [
        Spacer(1, 6 * mm),
        Paragraph("<b>DONATION RECEIPT</b>", styles['Heading2']),
        Spacer(1, 4 * mm),
    ]

    amount = f"{settings.CURRENCY_SYMBOL} {donation.total_value:,.2f}"
    rows = [
        ['Receipt No.', donation.receipt_number],
        ['Date', donation.donation_date.strftime('%d %b %Y')],
        ['Donor Name', donation.donor_name],
        ['Phone', donation.donor_phone or '-'],
        ['Address', donation.donor_address or '-'],
        ['Amount', amount],
    ]
    if donation.admission_id:
        rows.append(['Admission', donation.admission.admission_number])
    table = Table(rows, colWidths=[40 * mm, 110 * mm])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ('BACKGROUND', (0, 0), (0, -1), colors.whitesmoke),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story += [
        table,
        Spacer(1, 10 * mm),
        Paragraph(
            "Thank you for your generous donation. Your contribution helps us care for "
            "animals in need.", normal,
        ),
    ]
    if donation.notes:
        story += [Spacer(1, 4 * mm), Paragraph(f"<i>{escape(donation.notes)}</i>", normal)]

    doc.build(story)
    return buffer.getvalue()
