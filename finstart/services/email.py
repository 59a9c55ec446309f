import logging
import os
import smtplib
from email.message import EmailMessage

from jinja2 import Environment, FileSystemLoader, select_autoescape

from finstart.config import settings

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")

jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)

WELCOME_SUBJECT = "Welcome to Finstart - Your Onboarding Journey Begins"
WELCOME_NEXT_STEPS = [
    "Complete your profile details",
    "Verify your identity (KYC)",
    "Set up your financial preferences",
]


def render_welcome_email(name: str) -> str:
    """Renders the welcome email body. The name is HTML-escaped."""
    template = jinja_env.get_template("welcome_email.html")
    return template.render(name=name, next_steps=WELCOME_NEXT_STEPS)


def has_smtp_credentials() -> bool:
    return bool(settings.SMTP_USER and settings.SMTP_PASS)


def build_welcome_message(name: str, email: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = email
    msg["Subject"] = WELCOME_SUBJECT
    msg.set_content(f"Dear {name},\n\nThank you for choosing Finstart! Your onboarding journey has begun.")
    msg.add_alternative(render_welcome_email(name), subtype="html")
    return msg


def send_welcome_email(name: str, email: str) -> str:
    """
    Sends the welcome email (blocking, run it in a thread).

    Without SMTP credentials the send is only logged.

    Returns:
        Status message for the API response
    """
    msg = build_welcome_message(name, email)

    if not has_smtp_credentials():
        logger.warning("SMTP credentials not configured. Email simulation mode.")
        logger.info("Simulated email to=%s subject=%s", email, WELCOME_SUBJECT)
        return "Email simulated (missing credentials)"

    if settings.SMTP_SECURE:
        server = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT)
    else:
        server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT)

    with server:
        if not settings.SMTP_SECURE:
            server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASS)
        server.send_message(msg)

    logger.info("Welcome email sent to %s", email)
    return "Email sent successfully"
