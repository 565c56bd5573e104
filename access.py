"""
Row-level access policy for orders.

Each operation on the ``orders`` table is checked against the requesting
principal before it reaches the database:

  admin     -- full access
  user      -- read own and anonymous-created orders, insert as self or
               anonymous, cancel own orders, no delete
  anonymous -- insert anonymous orders, read a single order by id
"""

from collections import namedtuple

from sqlalchemy import or_

from models import Order

Principal = namedtuple("Principal", ["user_id", "role"])


class AccessDenied(Exception):
    """The principal may not perform this operation."""


def principal_for(profile):
    """Principal for a Profile row, or None for anonymous callers."""
    if profile is None:
        return None
    return Principal(user_id=profile.id, role=profile.role)


def is_admin(principal):
    return principal is not None and principal.role == "admin"


def scope_select(query, principal, allow_anonymous_list=False):
    """Restrict a list query to the orders ``principal`` may read."""
    if is_admin(principal):
        return query
    if principal is None:
        if allow_anonymous_list:
            return query
        raise AccessDenied("Sign in to list orders")
    return query.filter(or_(Order.user_id == principal.user_id, Order.user_id.is_(None)))


def can_select(principal, order):
    if is_admin(principal) or principal is None:
        return True
    return order.user_id in (principal.user_id, None)


def check_insert(principal, user_id):
    if is_admin(principal):
        return
    if user_id is None:
        return
    if principal is not None and user_id == principal.user_id:
        return
    raise AccessDenied("Cannot create orders on behalf of another user")


def check_update(principal, order, status=None):
    """Owners may only cancel their own orders; any other status change is
    an admin action."""
    if is_admin(principal):
        return
    if principal is not None and order.user_id == principal.user_id and status in (None, "cancelled"):
        return
    raise AccessDenied("Not authorised to update this order")


def check_payment_update(principal, order):
    """Payment-status writes come from the payment-result poll, which any
    caller who can read the order may trigger."""
    if not can_select(principal, order):
        raise AccessDenied("Not authorised to update this order")


def check_delete(principal, order):
    if not is_admin(principal):
        raise AccessDenied("Admin access required")
