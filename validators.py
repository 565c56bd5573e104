"""
Input validation utilities
"""
import re

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
# At least 9 characters of digits, spaces, dashes or parentheses, optional leading +
PHONE_PATTERN = re.compile(r'^[+]?[0-9\s\-()]{9,}$')

BOOKING_REQUIRED_FIELDS = {
    'customer_name': 'Name is required',
    'customer_email': 'Email is required',
    'customer_phone': 'Phone number is required',
    'pickup_date': 'Pickup date is required',
    'pickup_time': 'Pickup time is required',
}


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_phone(phone):
    """
    Validate phone number format: 9+ characters, digits and
    ``+ - ( )`` or spaces only

    Args:
        phone (str): Phone number to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not phone or not isinstance(phone, str):
        return False
    return bool(PHONE_PATTERN.match(phone.strip()))


def validate_booking_form(form):
    """Return a ``{field: message}`` map of problems with the customer form."""
    errors = {}
    for field, message in BOOKING_REQUIRED_FIELDS.items():
        value = form.get(field)
        if not isinstance(value, str) or not value.strip():
            errors[field] = message

    if 'customer_email' not in errors and not validate_email(form['customer_email']):
        errors['customer_email'] = 'Please enter a valid email address'
    if 'customer_phone' not in errors and not validate_phone(form['customer_phone']):
        errors['customer_phone'] = 'Please enter a valid phone number'

    notes = form.get('additional_notes')
    if notes is not None and not isinstance(notes, str):
        errors['additional_notes'] = 'Notes must be text'
    return errors

