"""
Server-rendered pages: planner, admin, login and payment result.
"""

from flask import Blueprint, request, render_template, redirect, current_app

from admin_orders import AdminOrders, SORT_KEYS
from auth_routes import (
    authenticate, current_profile, page_login_required, safe_redirect_target,
    start_session,
)
from models import ORDER_STATUSES
from payment_result import poll_payment_result
from services import get_order_store, get_gateway_service

pages_bp = Blueprint("pages", __name__)


@pages_bp.route("/", methods=["GET"])
def planner():
    return render_template(
        "planner.html",
        profile=current_profile(),
        rate_per_km=current_app.config["PRICE_PER_KM"],
        currency=current_app.config["CURRENCY"],
    )


@pages_bp.route("/admin", methods=["GET"])
@page_login_required(admin=True)
def admin(profile):
    admin_orders = AdminOrders(get_order_store(profile))
    admin_orders.load()

    status = request.args.get("status") or None
    if status not in ORDER_STATUSES:
        status = None
    sort = request.args.get("sort", "created_at")
    if sort not in SORT_KEYS:
        sort = "created_at"
    descending = request.args.get("order", "desc") != "asc"

    orders = admin_orders.view(status=status, search=request.args.get("q"), sort=sort, descending=descending)
    return render_template(
        "admin.html",
        profile=profile,
        orders=orders,
        stats=admin_orders.stats(),
        statuses=ORDER_STATUSES,
        current_status=status,
        currency=current_app.config["CURRENCY"],
    )


@pages_bp.route("/login", methods=["GET", "POST"])
def login():
    target = safe_redirect_target(request.values.get("redirect"))
    if request.method == "GET":
        return render_template("login.html", redirect_to=target, error=None)

    profile = authenticate(request.form.get("email"), request.form.get("password"))
    if profile is None:
        return render_template("login.html", redirect_to=target, error="Invalid email or password"), 401

    start_session(profile)
    return redirect(target)


@pages_bp.route("/payment-result", methods=["GET"])
def payment_result():
    order_id = request.args.get("orderId")
    mock_payment = request.args.get("mockPayment") == "true"
    if not order_id:
        return render_template("payment_result.html", order=None, payment_status="UNKNOWN",
                               mock_payment=mock_payment, currency=current_app.config["CURRENCY"]), 400

    result = poll_payment_result(get_order_store(current_profile()), get_gateway_service(), order_id)
    status_code = 200 if result.order is not None else 404
    return render_template(
        "payment_result.html",
        order=result.order,
        payment_status=result.payment_status,
        mock_payment=mock_payment,
        currency=current_app.config["CURRENCY"],
    ), status_code
