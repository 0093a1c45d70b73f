import smtplib
from email.message import EmailMessage

from flask import current_app

from scheduling.time_range import format_time


def send_email(to_email: str, subject: str, body: str):
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)

    if not host or not from_email:
        return False, "Email not configured"
    if not to_email:
        return False, "No recipient"

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=10) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        return False, str(exc)


def send_cancellation_code(booking, code: str, expires_at):
    """
    Delivers the one-time cancellation code to the operator mailbox,
    or to the customer when no operator address is configured.
    """
    to_email = current_app.config.get("CANCELLATION_NOTIFY_EMAIL") or booking.email
    ttl_minutes = max(int(current_app.config.get("CANCELLATION_CODE_TTL_SECONDS", 600)) // 60, 1)
    body = (
        f"Cancellation code for booking #{booking.id}: {code}\n\n"
        f"Customer: {booking.customer_name} ({booking.phone})\n"
        f"Court {booking.court_id}, {booking.booking_date.isoformat()} "
        f"{format_time(booking.start_time)}-{format_time(booking.end_time)}\n\n"
        f"The code is valid for {ttl_minutes} minutes and can be used once."
    )
    ok, error = send_email(to_email, f"Booking #{booking.id} cancellation code", body)
    if not ok:
        current_app.logger.warning("Cancellation code for booking %s not delivered: %s", booking.id, error)
    return ok


def send_booking_confirmation(booking, custom_message=None):
    """Confirmation to the customer after a booking commits; the operator's custom message is appended."""
    if not booking.email:
        current_app.logger.info("Booking %s has no email; confirmation skipped", booking.id)
        return False

    body = (
        f"Hi {booking.customer_name},\n\n"
        f"Your booking #{booking.id} is confirmed: court {booking.court_id}, "
        f"{booking.booking_date.isoformat()} {format_time(booking.start_time)}-{format_time(booking.end_time)}.\n"
        f"Total: {booking.total_price} PKR"
    )
    if custom_message:
        body += f"\n\n{custom_message}"

    ok, error = send_email(booking.email, f"Booking #{booking.id} confirmed", body)
    if not ok:
        current_app.logger.warning("Confirmation for booking %s not delivered: %s", booking.id, error)
    return ok
