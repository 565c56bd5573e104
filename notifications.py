"""
Notification services for the Route Planner.

Email: SendGrid (primary) with SMTP as fallback transport.

IMPORTANT: No public method in this module should ever raise an exception.
All errors are caught and logged so that a notification failure never
takes down a booking or payment flow.

New-order emails are sent from a background thread so that request
handlers are never blocked by network I/O to the email provider.
"""

import logging
import smtplib
import threading
from email.message import EmailMessage
from urllib.parse import quote

from email_templates import (
    admin_subject,
    admin_notification_html,
    admin_notification_text,
    customer_subject,
    customer_confirmation_html,
    customer_confirmation_text,
)

logger = logging.getLogger(__name__)


class Notifier:
    """Formats and delivers order emails using the app configuration."""

    def __init__(self, config):
        self.config = config

    # -----------------------------------------------------------------------
    # Transport chain
    # -----------------------------------------------------------------------
    def send_email_sync(self, to_email, subject, html_content="", text_content="", from_email=None):
        """Send an email via SendGrid, falling back to SMTP.

        Returns True when a transport accepted the message. Never raises.
        """
        from_email = from_email or self.config.get("FROM_EMAIL")
        try:
            sendgrid_key = self.config.get("SENDGRID_API_KEY")
            smtp_host = self.config.get("SMTP_HOST")

            if not sendgrid_key and not smtp_host:
                # Dev mode: no email provider configured
                logger.info(
                    "[DEV] Email to %s: %s -- %s",
                    to_email, subject, (text_content or html_content)[:120],
                )
                return True

            if sendgrid_key:
                try:
                    self._send_sendgrid(to_email, subject, html_content, text_content, from_email)
                    return True
                except Exception:
                    logger.exception("SendGrid email failed for %s, falling back to SMTP", to_email)

            if smtp_host:
                self._send_smtp(to_email, subject, html_content, text_content, from_email)
                return True

            return False
        except Exception:
            logger.exception("Failed to send email to %s", to_email)
            return False

    def _send_sendgrid(self, to_email, subject, html_content, text_content, from_email):
        from sendgrid import SendGridAPIClient
        from sendgrid.helpers.mail import Mail

        message = Mail(
            from_email=from_email,
            to_emails=to_email,
            subject=subject,
            html_content=html_content or None,
            plain_text_content=text_content or None,
        )
        sg = SendGridAPIClient(self.config["SENDGRID_API_KEY"])
        response = sg.send(message)
        if response.status_code >= 400:
            raise RuntimeError("SendGrid returned status {}".format(response.status_code))
        logger.info("Email sent via SendGrid to %s (status: %s)", to_email, response.status_code)

    def _send_smtp(self, to_email, subject, html_content, text_content, from_email):
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = from_email
        message["To"] = to_email
        message.set_content(text_content or "")
        if html_content:
            message.add_alternative(html_content, subtype="html")

        with smtplib.SMTP(self.config["SMTP_HOST"], self.config.get("SMTP_PORT", 587), timeout=10) as smtp:
            if self.config.get("SMTP_USE_TLS", True):
                smtp.starttls()
            if self.config.get("SMTP_USERNAME"):
                smtp.login(self.config["SMTP_USERNAME"], self.config.get("SMTP_PASSWORD", ""))
            smtp.send_message(message)
        logger.info("Email sent via SMTP to %s", to_email)

    # -----------------------------------------------------------------------
    # Order emails
    # -----------------------------------------------------------------------
    @property
    def currency(self):
        return self.config.get("CURRENCY", "CZK")

    def build_admin_mailto(self, order):
        """Pre-filled mail-client link used when the email API fails."""
        return "mailto:{}?subject={}&body={}".format(
            self.config.get("ADMIN_EMAIL"),
            quote(admin_subject(order)),
            quote(admin_notification_text(order, self.currency)),
        )

    def send_admin_notification(self, order):
        """Email the admin about a new order.

        Returns ``{"sent": bool, "mailto": str | None}``. Never raises.
        """
        try:
            sent = self.send_email_sync(
                self.config.get("ADMIN_EMAIL"),
                admin_subject(order),
                admin_notification_html(order, self.currency),
                admin_notification_text(order, self.currency),
            )
            if sent:
                return {"sent": True, "mailto": None}
            mailto = self.build_admin_mailto(order)
            logger.warning("Admin notification for order %s not delivered; open %s", order.id, mailto)
            return {"sent": False, "mailto": mailto}
        except Exception:
            logger.exception("Failed in send_admin_notification for order %s", order.id)
            return {"sent": False, "mailto": None}

    def send_customer_confirmation(self, order):
        """Email the customer a booking confirmation. Never raises."""
        try:
            sent = self.send_email_sync(
                order.customer_email,
                customer_subject(order),
                customer_confirmation_html(order, self.currency),
                customer_confirmation_text(order, self.currency),
            )
            if not sent:
                logger.warning("Customer confirmation for order %s not delivered", order.id)
            return sent
        except Exception:
            logger.exception("Failed in send_customer_confirmation for order %s", order.id)
            return False

    def _notify(self, order):
        admin_result = self.send_admin_notification(order)
        self.send_customer_confirmation(order)
        return admin_result

    def dispatch_order_notifications(self, order):
        """Send both new-order emails without blocking the caller. Never raises.

        Returns the admin notification result (``{"sent", "mailto"}``) when
        sending synchronously, or None when the emails were handed to a
        background thread and their outcome is not yet known.
        """
        try:
            if not self.config.get("NOTIFY_ASYNC", True):
                return self._notify(order)
            thread = threading.Thread(target=self._notify, args=(order,), daemon=True)
            thread.start()
            logger.debug("Order emails queued (async) for %s", order.id)
        except Exception:
            logger.exception("Failed to queue order emails for %s", order.id)
        return None
