"""
Email Service

Renders the registration summary email and delivers it over SMTP.
"""

import smtplib
import logging
from html import escape
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from monitoring.exceptions import DeliveryError, ConfigurationError
from utils.date_formatter import format_local_date

logger = logging.getLogger(__name__)

SUBJECT_FOUND = "🏀 Nuevas Inscripciones Disponibles!"
SUBJECT_EMPTY = "🏀 Sin inscripciones disponibles"
SUBJECT_FAILED = "🏀 Error al consultar inscripciones"

CELL_STYLE = "padding: 12px; text-align: left;"
HEADER_STYLE = "padding: 15px; text-align: left;"
COLUMNS = ["Polideportivo", "Categoría", "Actividad", "Subcategoría", "Horario"]


class SmtpChannel:
    """SMTP delivery channel (STARTTLS + login)."""

    def __init__(self, server, port, username=None, password=None):
        self.server = server
        self.port = port
        self.username = username
        self.password = password

    def send(self, recipient, sender, subject, html_body):
        """
        Send one HTML email.

        Raises:
            ConfigurationError: SMTP credentials are not configured
            DeliveryError: The SMTP server rejected the message
        """
        if not self.password:
            raise ConfigurationError(
                "Email credentials not configured. Set SMTP_PASSWORD environment variable."
            )

        message = MIMEMultipart("alternative")
        message["From"] = sender
        message["To"] = recipient
        message["Subject"] = subject
        message.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.server, self.port) as server:
                server.starttls()
                server.login(self.username or sender, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP error sending email to {recipient}: {e}") from e


def render_registrations_email(registrations, captured_at=None, reference_url=None,
                               interval_hours=6, tz_name='America/Argentina/Buenos_Aires'):
    """
    Render the summary for a non-empty result set.

    Returns:
        str: HTML body
    """
    header_cells = "".join(f'<th style="{HEADER_STYLE}">{c}</th>' for c in COLUMNS)
    rows = []
    for item in registrations:
        cells = "".join(
            f'<td style="{CELL_STYLE}">{escape(value)}</td>'
            for value in (item.polideportivo, item.categoria, item.actividad,
                          item.subcategoria, item.horario)
        )
        rows.append(f'<tr style="border-bottom: 1px solid #e0e0e0;">{cells}</tr>')

    link = ""
    if reference_url:
        link = (f'<p style="margin: 5px 0;">🔗 <a href="{escape(reference_url)}">'
                f'Ver datos en formato JSON</a></p>')

    return f"""<!DOCTYPE html>
<html lang="es">
<head><meta charset="UTF-8"><title>Inscripciones Básquet</title></head>
<body style="font-family: 'Arial', sans-serif; margin: 0; padding: 20px; background-color: #f7f7f7;">
  <div style="max-width: 800px; margin: 0 auto; background-color: white; border-radius: 10px;">
    <div style="background-color: #2c3e50; padding: 25px; border-radius: 10px 10px 0 0;">
      <h1 style="color: white; margin: 0; font-size: 24px;">🏀 Inscripciones Disponibles</h1>
    </div>
    <div style="padding: 25px;">
      <p style="color: #666; margin-bottom: 25px; font-size: 15px;">
        Se encontraron <strong>{len(registrations)} inscripciones</strong> disponibles para básquet.
        Fecha de consulta: {format_local_date(captured_at, tz_name)}
      </p>
      <table style="width: 100%; border-collapse: collapse; margin-bottom: 25px;">
        <thead><tr style="background-color: #f8f9fa; color: #2c3e50;">{header_cells}</tr></thead>
        <tbody>{"".join(rows)}</tbody>
      </table>
      <div style="border-top: 1px solid #eee; padding-top: 20px; color: #666; font-size: 14px;">
        <p style="margin: 5px 0;">📅 Actualizado automáticamente cada {interval_hours:g} horas</p>
        <p style="margin: 5px 0;">⚠️ Este es un mensaje automático, por favor no responder</p>
        {link}
      </div>
    </div>
  </div>
</body>
</html>
"""


def render_empty_email():
    return """<div style="max-width: 600px; margin: 0 auto; padding: 30px; background-color: #fff3cd; border-radius: 8px; text-align: center;">
  <h2 style="color: #856404; margin-top: 0;">⚠️ No hay inscripciones disponibles</h2>
  <p style="color: #856404;">No se encontraron inscripciones de básquet en este momento.</p>
  <p style="color: #856404;">Prueba nuevamente más tarde o verifica directamente en el sitio.</p>
</div>
"""


def render_failure_email(reason, screenshot_url=None):
    link = ""
    if screenshot_url:
        link = (f'<p style="color: #721c24;">🔗 <a href="{escape(screenshot_url)}">'
                f'Ver captura del error</a></p>')
    return f"""<div style="max-width: 600px; margin: 0 auto; padding: 30px; background-color: #f8d7da; border-radius: 8px; text-align: center;">
  <h2 style="color: #721c24; margin-top: 0;">❌ El proceso de consulta falló</h2>
  <p style="color: #721c24;">No se pudieron obtener las inscripciones de básquet.</p>
  <p style="color: #721c24;">Detalle: {escape(reason)}</p>
  {link}
</div>
"""


class EmailNotifier:
    """Builds the run summary and sends exactly one email per call."""

    def __init__(self, channel, recipient=None, sender=None, interval_hours=6,
                 tz_name='America/Argentina/Buenos_Aires'):
        self.channel = channel
        self.recipient = recipient
        self.sender = sender
        self.interval_hours = interval_hours
        self.tz_name = tz_name

    def render(self, registrations, reference_url=None, captured_at=None, failure=None):
        """
        Build subject and HTML body for a run.

        Args:
            registrations (list): Registrations found (empty on failure)
            reference_url (str, optional): Snapshot link, or screenshot link on failure
            captured_at (datetime, optional): Capture time shown in the email
            failure (str, optional): Failure reason; selects the failure message

        Returns:
            tuple: (subject, html_body)
        """
        if failure is not None:
            return SUBJECT_FAILED, render_failure_email(failure, reference_url)
        if registrations:
            body = render_registrations_email(
                registrations, captured_at, reference_url,
                interval_hours=self.interval_hours, tz_name=self.tz_name,
            )
            return SUBJECT_FOUND, body
        return SUBJECT_EMPTY, render_empty_email()

    def notify(self, registrations, reference_url=None, captured_at=None, failure=None):
        """
        Send the run summary.

        Returns:
            bool: True if the email was sent, False if delivery was skipped

        Raises:
            DeliveryError: The channel rejected the message
        """
        if not self.recipient or not self.sender:
            logger.error("✗ Missing email configuration (RECIPIENT_EMAIL / FROM_EMAIL)")
            return False

        subject, html_body = self.render(registrations, reference_url, captured_at, failure)

        try:
            self.channel.send(self.recipient, self.sender, subject, html_body)
        except ConfigurationError as e:
            logger.error(f"✗ {e}")
            return False
        except DeliveryError as e:
            logger.error(f"✗ Error sending email: {e}")
            raise

        logger.info(f"✓ Email sent successfully to {self.recipient}")
        return True


def send_test_email(channel, recipient, sender):
    """
    Send a test email to verify email configuration.

    Returns:
        bool: True if email sent successfully, False otherwise
    """
    body = "<p>Este es un correo de prueba del monitor de inscripciones. La configuración de email funciona correctamente.</p>"
    try:
        channel.send(recipient, sender, "Monitor de Inscripciones - Email de prueba", body)
        logger.info(f"Test email sent to {recipient}")
        return True
    except DeliveryError as e:
        logger.error(f"Error sending test email: {e}")
        return False
