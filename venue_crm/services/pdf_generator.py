"""
PDF documents for proposals, booking confirmations and commission invoices

Each generator renders an A4 document with the agency header, a details table
and page numbers, returning the PDF bytes.
"""

import io
import logging
from datetime import date, datetime, timedelta
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import CLAIM_PAYMENT_TERMS_DAYS
from ..models import Booking, CommissionClaim, Proposal
from ..shared.money import quantize_money

logger = logging.getLogger(__name__)

CATEGORY_LABELS = {
    "room_hire": "Room hire",
    "food_beverage": "Food & beverage",
    "av_equipment": "AV equipment",
    "other": "Other",
}

STATUS_LABELS = {
    "draft": "Draft",
    "proposal_sent": "Proposal sent",
    "option": "Option",
    "confirmed": "Confirmed",
    "completed": "Completed",
    "sent": "Sent",
    "paid": "Paid",
    "overdue": "Overdue",
}


def format_money(value) -> str:
    return f"£{quantize_money(value):,.2f}"


def format_date(value) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%d %B %Y")


def _text(value) -> str:
    # Paragraph parses a mini-markup, so user text must be escaped
    return escape(str(value)) if value else "-"


class BasePDFGenerator:
    """Shared layout: styles, header block, tables and page numbers"""

    title = "Document"

    def __init__(self):
        # PDF settings
        self.page_width, self.page_height = A4
        self.margin = 0.75 * inch
        self.content_width = self.page_width - (2 * self.margin)

        self.brand_color = colors.HexColor("#1d4ed8")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "DocTitle",
            parent=styles["Heading1"],
            fontSize=22,
            textColor=self.brand_color,
            spaceAfter=12,
        )
        self.heading_style = ParagraphStyle(
            "DocHeading",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=self.dark_gray,
            spaceAfter=8,
            spaceBefore=16,
        )
        self.body_style = ParagraphStyle(
            "DocBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            spaceAfter=6,
        )
        self.footer_style = ParagraphStyle(
            "DocFooter", parent=self.body_style, fontSize=8, textColor=colors.grey, alignment=1
        )

    def build_story(self) -> list:
        raise NotImplementedError

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=self.title,
        )
        doc.build(self.build_story(), onFirstPage=self._add_page_number, onLaterPages=self._add_page_number)

        pdf_bytes = buffer.getvalue()
        buffer.close()
        logger.info(f"✅ Generated {self.title} ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def info_table(self, rows: list[tuple[str, str]]) -> Table:
        table = Table(
            [[label, Paragraph(value, self.body_style)] for label, value in rows],
            colWidths=[1.6 * inch, self.content_width - 1.6 * inch],
        )
        table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table

    def data_table(self, header: list[str], rows: list[list], col_widths: list[float]) -> Table:
        """Striped table with a brand-coloured header; numeric columns right-aligned"""
        table = Table([header] + rows, colWidths=col_widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    # Header row
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 9),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                    ("TOPPADDING", (0, 0), (-1, 0), 8),
                    # Data rows
                    ("FONT", (0, 1), (-1, -1), "Helvetica", 9),
                    ("TEXTCOLOR", (0, 1), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 1), (-1, -1), "TOP"),
                    ("ALIGN", (-3, 0), (-1, -1), "RIGHT"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, self.light_gray]),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("LEFTPADDING", (0, 0), (-1, -1), 6),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        return table

    def totals_table(self, rows: list[tuple[str, str]]) -> Table:
        table = Table(list(rows), colWidths=[self.content_width - 1.6 * inch, 1.6 * inch])
        table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (-1, -1), "Helvetica", 10),
                    ("FONT", (0, -1), (-1, -1), "Helvetica-Bold", 11),
                    ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                    ("LINEABOVE", (0, -1), (-1, -1), 1, self.dark_gray),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                ]
            )
        )
        return table

    def _add_page_number(self, canvas_obj, doc):
        """Add page numbers to PDF"""
        page_num = canvas_obj.getPageNumber()
        canvas_obj.setFont("Helvetica", 9)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawRightString(self.page_width - self.margin, self.margin / 2, f"Page {page_num}")


class ProposalPDFGenerator(BasePDFGenerator):
    """Client-facing proposal: one section per venue with its charge lines"""

    def __init__(self, proposal: Proposal):
        super().__init__()
        self.proposal = proposal
        self.title = f"Proposal #{proposal.id}"

    def build_story(self) -> list:
        proposal = self.proposal
        client = proposal.client
        story = [
            Paragraph("VENUE PROPOSAL", self.title_style),
            self.info_table(
                [
                    ("Proposal:", f"#{proposal.id}"),
                    ("Client:", _text(client.name if client else None)),
                    ("Company:", _text(client.company if client else None)),
                    ("Contact:", _text(client.contact_name if client else None)),
                    ("Status:", STATUS_LABELS.get(proposal.status, proposal.status)),
                    ("Date:", format_date(proposal.created_at or date.today())),
                ]
            ),
        ]

        for row in proposal.venues:
            venue = row.venue
            story.append(Paragraph(_text(venue.name if venue else f"Venue {row.venue_id}"), self.heading_style))
            if venue and venue.location:
                story.append(Paragraph(_text(venue.location), self.body_style))

            lines = row.charge_lines or []
            if lines:
                story.append(
                    self.data_table(
                        ["Description", "Category", "Qty", "Unit price", "Total"],
                        [
                            [
                                Paragraph(_text(line.get("description")), self.body_style),
                                CATEGORY_LABELS.get(line.get("category"), "Other"),
                                line.get("quantity"),
                                format_money(line.get("unitPrice")),
                                format_money(line.get("total")),
                            ]
                            for line in lines
                        ],
                        [2.6 * inch, 1.3 * inch, 0.6 * inch, 1.1 * inch, 1.1 * inch],
                    )
                )
            else:
                story.append(Paragraph("No charges itemised for this venue.", self.body_style))

            story.append(Spacer(1, 0.1 * inch))
            story.append(self.totals_table([("Venue total", format_money(row.total_value))]))
            if row.notes:
                story.append(Paragraph(_text(row.notes), self.body_style))

        story.append(Spacer(1, 0.3 * inch))
        story.append(self.totals_table([("Proposal total", format_money(proposal.total_value))]))

        if proposal.notes:
            story.append(Paragraph("NOTES", self.heading_style))
            story.append(Paragraph(_text(proposal.notes), self.body_style))

        story.append(Spacer(1, 0.5 * inch))
        story.append(
            Paragraph(
                "<i>Prices are subject to venue availability until an option or confirmation is agreed.</i>",
                self.footer_style,
            )
        )
        return story


class BookingConfirmationPDFGenerator(BasePDFGenerator):
    def __init__(self, booking: Booking):
        super().__init__()
        self.booking = booking
        self.title = f"Booking Confirmation #{booking.id}"

    def build_story(self) -> list:
        booking = self.booking
        client, venue = booking.client, booking.venue
        rows = [
            ("Booking:", f"#{booking.id}"),
            ("Proposal:", f"#{booking.proposal_id}"),
            ("Client:", _text(client.name if client else None)),
            ("Company:", _text(client.company if client else None)),
            ("Venue:", _text(venue.name if venue else None)),
            ("Location:", _text(venue.location if venue else None)),
            ("Status:", STATUS_LABELS.get(booking.status, booking.status)),
        ]
        if booking.option_expiry:
            rows.append(("Option expires:", format_date(booking.option_expiry)))
        rows.append(("Issued:", format_date(date.today())))

        story = [
            Paragraph("BOOKING CONFIRMATION", self.title_style),
            self.info_table(rows),
            Spacer(1, 0.3 * inch),
            self.totals_table([("Booking value", format_money(booking.total_value))]),
        ]

        documents = booking.documents or []
        if documents:
            story.append(Paragraph("SIGNED DOCUMENTS", self.heading_style))
            for document in documents:
                story.append(
                    Paragraph(
                        f"{_text(document.get('filename'))} ({_text(document.get('uploadedAt', '')[:10])})",
                        self.body_style,
                    )
                )

        if booking.notes:
            story.append(Paragraph("NOTES", self.heading_style))
            story.append(Paragraph(_text(booking.notes), self.body_style))

        return story


class ClaimInvoicePDFGenerator(BasePDFGenerator):
    """Commission invoice addressed to the venue"""

    def __init__(self, claim: CommissionClaim):
        super().__init__()
        self.claim = claim
        self.title = f"Invoice {claim.invoice_number or claim.id}"

    def build_story(self) -> list:
        claim = self.claim
        booking = claim.booking
        venue = booking.venue if booking else None
        client = booking.client if booking else None
        issued = claim.sent_date or date.today()

        story = [
            Paragraph("COMMISSION INVOICE", self.title_style),
            self.info_table(
                [
                    ("Invoice number:", _text(claim.invoice_number)),
                    ("Invoice date:", format_date(issued)),
                    ("Due date:", format_date(issued + timedelta(days=CLAIM_PAYMENT_TERMS_DAYS))),
                    ("Bill to:", _text(venue.name if venue else None)),
                    ("Venue contact:", _text(venue.contact_name if venue else None)),
                    ("Status:", STATUS_LABELS.get(claim.status, claim.status)),
                ]
            ),
            Spacer(1, 0.3 * inch),
            self.data_table(
                ["Description", "Booking", "Booking value", "Commission"],
                [
                    [
                        Paragraph(
                            f"Commission for booking of {_text(client.name if client else 'client')}",
                            self.body_style,
                        ),
                        f"#{claim.booking_id}",
                        format_money(booking.total_value if booking else 0),
                        format_money(claim.amount),
                    ]
                ],
                [3.0 * inch, 0.9 * inch, 1.4 * inch, 1.4 * inch],
            ),
            Spacer(1, 0.1 * inch),
            self.totals_table([("Amount due", format_money(claim.amount))]),
        ]

        if claim.paid_date:
            story.append(Paragraph(f"Paid on {format_date(claim.paid_date)}", self.body_style))
        if claim.notes:
            story.append(Paragraph("NOTES", self.heading_style))
            story.append(Paragraph(_text(claim.notes), self.body_style))

        story.append(Spacer(1, 0.5 * inch))
        story.append(
            Paragraph(f"<i>Payment terms: {CLAIM_PAYMENT_TERMS_DAYS} days from invoice date.</i>", self.footer_style)
        )
        return story
