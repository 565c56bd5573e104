"""
Mail-sending endpoint used by the front end and other local services.
"""

from flask import Blueprint, request, jsonify

from extensions import limiter
from services import get_notifier

email_bp = Blueprint("email", __name__, url_prefix="/api")


@email_bp.route("/send-email", methods=["POST"])
@limiter.limit("30 per minute")
def send_email():
    """
    Send an email through SendGrid, falling back to SMTP.
    Body JSON: to, from?, subject, html?, text?  (one of html/text required)
    """
    data = request.get_json(silent=True) or {}
    to = data.get("to")
    subject = data.get("subject")
    html = data.get("html") or ""
    text = data.get("text") or ""

    if not to or not subject or (not html and not text):
        return jsonify({
            "success": False,
            "error": "Missing required fields: to, subject, and either html or text",
        }), 400

    sent = get_notifier().send_email_sync(to, subject, html, text, from_email=data.get("from"))
    if not sent:
        return jsonify({"success": False, "error": "Failed to send email"}), 500

    return jsonify({"success": True, "message": "Email sent successfully"}), 200
