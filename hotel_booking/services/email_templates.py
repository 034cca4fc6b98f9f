from __future__ import annotations

from datetime import date
from html import escape

from hotel_booking.models import Booking, PaymentMethod, PaymentStatus
from hotel_booking.utils.config import Settings

_CELL = "padding: 8px; border-bottom: 1px solid #e0e0e0;"
_PANEL = "background-color: #ffffff; border: 1px solid #e0e0e0; border-radius: 5px; padding: 15px;"


def format_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def _row(label: str, value: str) -> str:
    return f'<tr><td style="{_CELL} width: 40%;"><strong>{escape(label)}:</strong></td><td style="{_CELL}">{value}</td></tr>'


def _room_rows(booking: Booking, currency: str) -> str:
    return "".join(
        f'<tr><td style="{_CELL}">Room {escape(entry.room_number)}</td>'
        f'<td style="{_CELL}">{currency}{entry.price}/night</td></tr>'
        for entry in booking.selected_rooms
    )


def _rooms_section(booking: Booking, currency: str, accent: str) -> str:
    return (
        f'<h3 style="color: {accent}; margin-top: 20px;">Room Details</h3>'
        f'<div style="{_PANEL}"><table style="width: 100%; border-collapse: collapse;">'
        "<thead><tr><th style=\"padding: 8px; text-align: left;\">Room</th>"
        "<th style=\"padding: 8px; text-align: left;\">Price</th></tr></thead>"
        f"<tbody>{_room_rows(booking, currency)}</tbody></table></div>"
    )


def _requests_section(booking: Booking, accent: str) -> str:
    if not booking.special_requests:
        return ""
    return (
        f'<h3 style="color: {accent}; margin-top: 20px;">Special Requests</h3>'
        f'<div style="{_PANEL}"><p style="margin: 0;">{escape(booking.special_requests)}</p></div>'
    )


def _frame(title: str, hotel_name: str, accent: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; '
        'border: 1px solid #e0e0e0; border-radius: 8px; overflow: hidden;">'
        f'<div style="background-color: {accent}; color: white; padding: 20px; text-align: center;">'
        f'<h1 style="margin: 0; font-size: 24px;">{escape(title)}</h1>'
        f'<p style="margin: 5px 0 0; font-size: 16px;">{escape(hotel_name)}</p></div>'
        f'<div style="padding: 20px; background-color: #f9f9f9;">{body}</div></div>'
    )


def guest_confirmation(booking: Booking, settings: Settings) -> tuple[str, str]:
    """Subject and HTML body of the confirmation sent to the guest."""

    accent = "#4a6baf"
    currency = settings.currency_symbol
    details = "".join(
        [
            _row("Booking ID", escape(booking.reference)),
            _row("Guest Name", escape(booking.customer_name)),
            _row("Check-in", format_date(booking.check_in_date)),
            _row("Check-out", format_date(booking.check_out_date)),
            _row("Total Nights", str(booking.nights)),
            _row("Total Amount", f"{currency}{booking.total_amount}"),
            _row("Status", escape(booking.booking_status.value)),
        ]
    )
    body = (
        f'<h2 style="color: {accent}; margin-top: 0;">Booking Details</h2>'
        f'<table style="width: 100%; border-collapse: collapse; margin-bottom: 20px;">{details}</table>'
        f"{_rooms_section(booking, currency, accent)}"
        f"{_requests_section(booking, accent)}"
        '<div style="margin-top: 30px; background-color: #f0f5ff; padding: 15px; border-radius: 5px;">'
        f'<h3 style="color: {accent}; margin-top: 0;">Hotel Information</h3>'
        f"<p><strong>Address:</strong> {escape(settings.hotel_address)}</p>"
        f"<p><strong>Phone:</strong> {escape(settings.hotel_phone)}</p>"
        f"<p><strong>Email:</strong> {escape(settings.from_email)}</p></div>"
        '<div style="margin-top: 30px; text-align: center; color: #666; font-size: 14px;">'
        f"<p>Thank you for choosing {escape(settings.hotel_name)}! We look forward to serving you.</p>"
        "<p>Please present this confirmation at check-in.</p></div>"
    )
    subject = f"Booking Confirmation #{booking.reference} - {settings.hotel_name}"
    return subject, _frame("Booking Confirmed!", settings.hotel_name, accent, body)


def admin_notification(booking: Booking, settings: Settings) -> tuple[str, str]:
    """Subject and HTML body of the new-booking alert sent to the hotel admin."""

    accent = "#d9534f"
    currency = settings.currency_symbol
    method = "Online Payment" if booking.payment_method == PaymentMethod.ONLINE else "Pay at Hotel"
    paid = "Paid" if booking.payment_status == PaymentStatus.COMPLETED else "Pending"
    details = "".join(
        [
            _row("Booking ID", escape(booking.reference)),
            _row("Guest Name", escape(booking.customer_name)),
            _row("Phone", escape(booking.customer_phone)),
            _row("Email", escape(booking.customer_email or "Not provided")),
            _row("Check-in", format_date(booking.check_in_date)),
            _row("Check-out", format_date(booking.check_out_date)),
            _row("Total Nights", str(booking.nights)),
            _row("Payment Method", method),
            _row("Payment Status", paid),
            _row("Total Amount", f"<strong>{currency}{booking.total_amount}</strong>"),
        ]
    )
    body = (
        f'<h2 style="color: {accent}; margin-top: 0;">Booking Summary</h2>'
        f'<table style="width: 100%; border-collapse: collapse; margin-bottom: 20px;">{details}</table>'
        f"{_rooms_section(booking, currency, accent)}"
        f"{_requests_section(booking, accent)}"
        '<div style="margin-top: 30px; text-align: center;">'
        f'<a href="{escape(settings.admin_panel_url)}" style="background-color: {accent}; color: white; '
        'padding: 10px 20px; text-decoration: none; border-radius: 5px;">View in Admin Panel</a></div>'
    )
    subject = f"New Booking: {booking.customer_name} ({booking.reference})"
    return subject, _frame("New Booking Received", settings.hotel_name, accent, body)
