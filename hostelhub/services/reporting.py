import csv
from io import StringIO, BytesIO

from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib import colors
from reportlab.lib.units import inch

from ..models import User
from .commissions import AgentCommission
from .currency import format_money


def _amount(value) -> str:
    return f"{value:.2f}"


def generate_commission_csv(agent: AgentCommission) -> str:
    """Generates a CSV statement of one agent's referred bookings and commissions."""
    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(["Booking ID", "Date", "Hostel", "Room", "Student", "Amount", "Commission", "Commission Status"])

    for b in agent.bookings:
        writer.writerow([
            b.id,
            b.booking_date,
            b.hostel_name,
            b.room_number,
            b.student_name,
            _amount(b.amount),
            _amount(b.commission_amount),
            b.commission_status,
        ])

    writer.writerow([])
    writer.writerow(["Total commission", _amount(agent.total_commission)])
    writer.writerow(["Paid", _amount(agent.paid_commission)])
    writer.writerow(["Pending", _amount(agent.pending_commission)])

    return output.getvalue()


def generate_commission_pdf(agent: AgentCommission, business: User) -> bytes:
    """Generates a PDF commission statement using ReportLab."""
    currency = business.currency
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, rightMargin=0.5*inch, leftMargin=0.5*inch, topMargin=0.5*inch, bottomMargin=0.5*inch)
    styles = getSampleStyleSheet()
    elements = []

    owner = business.business_name or business.display_name or business.email
    elements.append(Paragraph(f"Commission Statement: {agent.agent_name}", styles['h1']))
    elements.append(Paragraph(f"Issued by {owner}. Last booking: {agent.last_booking_date}", styles['h2']))
    elements.append(Spacer(1, 0.25*inch))

    data = [["Date", "Hostel", "Room", "Student", "Commission", "Status"]]
    for b in agent.bookings:
        data.append([
            b.booking_date,
            b.hostel_name,
            b.room_number,
            b.student_name,
            format_money(b.commission_amount, currency),
            str(b.commission_status).title(),
        ])

    table = Table(data, colWidths=[1*inch, 1.8*inch, 0.8*inch, 1.5*inch, 1*inch, 0.9*inch])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.teal),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('BACKGROUND', (0, 1), (-1, -1), colors.beige),
        ('GRID', (0, 0), (-1, -1), 1, colors.black)
    ]))
    elements.append(table)
    elements.append(Spacer(1, 0.25*inch))

    totals = (
        f"Total: {format_money(agent.total_commission, currency)} | "
        f"Paid: {format_money(agent.paid_commission, currency)} | "
        f"Pending: {format_money(agent.pending_commission, currency)}"
    )
    elements.append(Paragraph(totals, styles['Normal']))

    doc.build(elements)
    return buffer.getvalue()
