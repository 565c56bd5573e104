"""
HTML and plain-text email templates for the Route Planner.

Every ``*_html`` function returns a complete HTML string and every
``*_text`` function the matching plain-text body, ready for
``notifications.send_email_sync``.

Design tokens:
  - Primary accent: #6366F1 (indigo)
  - Background:     #f9f9f9
  - Font stack:     Arial, sans-serif

All styles are inlined for maximum email-client compatibility.
"""

from html import escape as _esc

from pricing import format_distance_km


# ---------------------------------------------------------------------------
# Shared layout helpers
# ---------------------------------------------------------------------------

def _header(title):
    return (
        '<div style="background-color:#6366F1;color:#ffffff;padding:20px;text-align:center;">'
        '<h2 style="margin:0;">{}</h2>'
        '</div>'
    ).format(_esc(title))


def _footer():
    return (
        '<div style="text-align:center;margin-top:20px;font-size:12px;color:#666666;">'
        '<p>This is an automated message from the Route Planner system.</p>'
        '</div>'
    )


def _wrap(title, body_html):
    """Wrap inner content in the common email shell."""
    return (
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;">'
        + _header(title)
        + '<div style="padding:20px;background-color:#f9f9f9;">'
        + body_html
        + '</div>'
        + _footer()
        + '</div>'
    )


def _detail_rows(rows):
    """``rows`` is a list of (label, value) tuples."""
    return ''.join(
        '<p style="margin:4px 0;"><strong>{}:</strong> {}</p>'.format(_esc(str(label)), _esc(str(value)))
        for label, value in rows
    )


def _text_rows(rows):
    return '\n'.join('- {}: {}'.format(label, value) for label, value in rows)


def _price(order, currency):
    return '{} {}'.format(order.price, currency)


def _admin_rows(order, currency):
    return [
        ('Order ID', order.id),
        ('Customer', order.customer_name),
        ('Email', order.customer_email),
        ('Phone', order.customer_phone),
        ('Pickup Date', order.pickup_date),
        ('Pickup Time', order.pickup_time),
        ('From', order.start_address),
        ('To', order.end_address),
        ('Distance', '{} km'.format(format_distance_km(order.distance))),
        ('Price', _price(order, currency)),
    ]


def _customer_rows(order, currency):
    return [
        ('Booking ID', order.id),
        ('Pickup Date', order.pickup_date),
        ('Pickup Time', order.pickup_time),
        ('From', order.start_address),
        ('To', order.end_address),
        ('Distance', '{} km'.format(format_distance_km(order.distance))),
        ('Price', _price(order, currency)),
    ]


# ---------------------------------------------------------------------------
# 1. Admin: new order notification
# ---------------------------------------------------------------------------

def admin_subject(order):
    return 'New Order Received: {}'.format(order.id)


def admin_notification_html(order, currency='CZK'):
    body = (
        '<p>A new order has been placed in the Route Planner system.</p>'
        '<div style="margin-top:20px;"><h3>Order Details</h3>'
        + _detail_rows(_admin_rows(order, currency))
        + '</div>'
        '<p>Please log in to the admin dashboard to manage this order.</p>'
    )
    return _wrap('New Order Notification', body)


def admin_notification_text(order, currency='CZK'):
    return (
        'New Order Notification\n\n'
        'A new order has been placed in the Route Planner system.\n\n'
        'Order Details:\n'
        + _text_rows(_admin_rows(order, currency))
        + '\n\nPlease log in to the admin dashboard to manage this order.\n'
    )


# ---------------------------------------------------------------------------
# 2. Customer: booking confirmation
# ---------------------------------------------------------------------------

def customer_subject(order):
    return 'Your Route Booking Confirmation: {}'.format(order.id)


def customer_confirmation_html(order, currency='CZK'):
    body = (
        '<p>Dear {name},</p>'
        '<p>Thank you for your booking with Route Planner. '
        'Your order has been received and is being processed.</p>'
        '<div style="margin-top:20px;"><h3>Booking Details</h3>'
    ).format(name=_esc(order.customer_name or 'customer'))
    body += _detail_rows(_customer_rows(order, currency))
    body += (
        '</div>'
        '<p>If you have any questions or need to make changes to your booking, please contact us.</p>'
        '<p>Thank you for choosing our service.</p>'
        '<p>Best regards,<br>The Route Planner Team</p>'
    )
    return _wrap('Your Route Booking Confirmation', body)


def customer_confirmation_text(order, currency='CZK'):
    return (
        'Your Route Booking Confirmation\n\n'
        'Dear {name},\n\n'
        'Thank you for your booking with Route Planner. '
        'Your order has been received and is being processed.\n\n'
        'Booking Details:\n'
    ).format(name=order.customer_name or 'customer') + _text_rows(_customer_rows(order, currency)) + (
        '\n\nIf you have any questions or need to make changes to your booking, please contact us.\n\n'
        'Thank you for choosing our service.\n\n'
        'Best regards,\nThe Route Planner Team\n'
    )
