"""
PDF receipt generation.

Renders a stored invoice as an A4 tax invoice: shop header, customer block,
weight-priced line items, GST breakdown, old gold credit, round off, payment.
Only stored values are printed; nothing is recalculated here.
"""
from io import BytesIO
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from sqlalchemy.orm import Session
from jewelbill.models.invoice import Invoice
from jewelbill.models.shop_settings import ShopSettings
from jewelbill.services.invoice_service import get_invoice
from jewelbill.services.settings_service import get_shop_settings


def rupees(value) -> str:
    # Rs. rather than the rupee sign: the base-14 fonts have no glyph for it
    return f"Rs. {float(value or 0):,.2f}"


def grams(value) -> str:
    return f"{float(value or 0):,.3f} g"


def _address_lines(address: dict | None) -> str:
    if not address:
        return ""
    parts = [address.get(k) for k in ("street", "city", "state", "zip_code", "country")]
    return escape(", ".join(p for p in parts if p))


def build_invoice_pdf(invoice: Invoice, shop: ShopSettings) -> BytesIO:
    """Render one invoice into an in-memory PDF."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=0.5*inch, bottomMargin=0.5*inch,
                            title=invoice.invoice_number or f"Invoice {invoice.id}")

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'ShopTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#8a6d1d'),
        alignment=TA_CENTER,
        spaceAfter=4
    )
    heading_style = ParagraphStyle(
        'SectionHeading',
        parent=styles['Heading2'],
        fontSize=12,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=4
    )
    normal_style = ParagraphStyle(
        'Body',
        parent=styles['Normal'],
        fontSize=9,
        textColor=colors.HexColor('#374151')
    )
    centered_style = ParagraphStyle('BodyCentered', parent=normal_style, alignment=TA_CENTER)

    # Shop header
    elements.append(Paragraph(escape(shop.shop_name), title_style))
    shop_lines = [escape(line) for line in (shop.address, shop.phone, shop.email) if line]
    if shop.gst_number:
        shop_lines.append(f"GSTIN: {escape(shop.gst_number)}")
    if shop_lines:
        elements.append(Paragraph("<br/>".join(shop_lines), centered_style))
    elements.append(Spacer(1, 0.15*inch))
    elements.append(Paragraph("<b>TAX INVOICE</b>", centered_style))
    elements.append(Spacer(1, 0.2*inch))

    # Customer and invoice info
    customer_info = f"<b>{escape(invoice.customer_name)}</b>"
    if invoice.customer_phone:
        customer_info += f"<br/>Phone: {escape(invoice.customer_phone)}"
    if invoice.customer_email:
        customer_info += f"<br/>{escape(invoice.customer_email)}"
    address = _address_lines(invoice.customer_address)
    if address:
        customer_info += f"<br/>{address}"

    info_data = [[
        Paragraph(f"<b>Bill To:</b><br/>{customer_info}", normal_style),
        Paragraph(f"<b>Invoice #:</b> {escape(invoice.invoice_number or str(invoice.id))}<br/>"
                  f"<b>Date:</b> {invoice.invoice_date.strftime('%d %b %Y')}<br/>"
                  f"<b>Due:</b> {invoice.due_date.strftime('%d %b %Y')}<br/>"
                  f"<b>Status:</b> {invoice.status.upper()}", normal_style),
    ]]
    info_table = Table(info_data, colWidths=[3.7*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.2*inch))

    # Line items
    header = ["#", "Description", "HSN", "Gross", "Less", "Net", "Rate/10g", "Labour", "Amount"]
    items_data = [[Paragraph(f"<b>{h}</b>", normal_style) for h in header]]
    for n, item in enumerate(invoice.items, start=1):
        description = item.description or item.item_type or "Item"
        if item.pieces:
            description = f"{description} ({item.pieces} pcs)"
        items_data.append([
            str(n),
            Paragraph(escape(description), normal_style),
            item.hsn_code or "",
            grams(item.gross_weight),
            grams(item.less_weight),
            grams(item.net_weight),
            rupees(item.rate_per_ten_gram),
            rupees(item.labour_charge_amount),
            rupees(item.amount),
        ])

    items_table = Table(
        items_data,
        colWidths=[0.3*inch, 1.6*inch, 0.5*inch, 0.7*inch, 0.6*inch, 0.7*inch, 0.9*inch, 0.8*inch, 0.9*inch],
        repeatRows=1,
    )
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('ALIGN', (3, 1), (-1, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # Totals
    rows = [
        ("Subtotal", rupees(invoice.subtotal)),
        (f"CGST ({float(invoice.cgst_rate):g}%)", rupees(invoice.cgst_amount)),
        (f"SGST ({float(invoice.sgst_rate):g}%)", rupees(invoice.sgst_amount)),
    ]
    if invoice.discount:
        rows.append(("Discount", f"- {rupees(invoice.discount)}"))
    if invoice.old_gold_amount:
        rows.append((f"Old Gold ({grams(invoice.old_gold_weight)})", f"- {rupees(invoice.old_gold_amount)}"))
    rows.append(("Round Off", f"{float(invoice.round_off or 0):+.2f}"))
    rows.append(("TOTAL", rupees(invoice.total)))
    rows.append(("Cash Received", rupees(invoice.cash_received)))
    rows.append(("Balance", rupees(invoice.balance_amount)))

    total_row = rows.index(next(r for r in rows if r[0] == "TOTAL"))
    total_data = [['', Paragraph(f"<b>{label}:</b>", normal_style), value] for label, value in rows]
    total_table = Table(total_data, colWidths=[3.8*inch, 1.7*inch, 1.4*inch])
    total_table.setStyle(TableStyle([
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('LINEABOVE', (1, total_row), (-1, total_row), 1, colors.black),
        ('FONTNAME', (2, total_row), (2, total_row), 'Helvetica-Bold'),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]))
    elements.append(total_table)
    elements.append(Spacer(1, 0.3*inch))

    if invoice.payment_method:
        elements.append(Paragraph(f"<b>Payment Method:</b> {escape(invoice.payment_method)}", normal_style))
    if invoice.notes:
        elements.append(Paragraph("<b>Notes:</b>", heading_style))
        elements.append(Paragraph(escape(invoice.notes), normal_style))
    if invoice.terms:
        elements.append(Paragraph("<b>Terms &amp; Conditions:</b>", heading_style))
        elements.append(Paragraph(escape(invoice.terms), normal_style))

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.4*inch))
    elements.append(Paragraph("Thank you for your business!", footer_style))
    elements.append(Paragraph(f"Generated on {datetime.now().strftime('%d %b %Y at %I:%M %p')}", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def generate_invoice_pdf(db: Session, invoice_id: int) -> BytesIO:
    """
    Generate the receipt PDF for a stored invoice.

    Raises:
        InvoiceNotFound
    """
    invoice = get_invoice(db, invoice_id)
    return build_invoice_pdf(invoice, get_shop_settings(db))
