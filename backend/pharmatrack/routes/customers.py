# Overview: Flask API routes for the shop's customer directory.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission, require_subscription
from ..responses import json_body, ok
from ..services import customer_service
from ..services.tenant_service import get_current_shop_id


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
@require_subscription
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    """Search by name or phone (?q=), with purchase totals per customer."""
    shop_id = get_current_shop_id()
    customers = customer_service.search_customers(shop_id, request.args.get("q"))
    return ok(customers)


@customers_bp.post("")
@require_auth
@require_subscription
@require_permission("MANAGE_CUSTOMERS")
def create_customer_route():
    """
    Create a customer, or return the existing one with the same phone.

    201 when created, 200 when an existing customer is returned.
    """
    shop_id = get_current_shop_id()
    customer, created = customer_service.create_customer(shop_id, json_body(), user_id=g.current_user_id)
    if created:
        return ok(customer.to_dict(), message="Customer created", status=201)
    return ok(customer.to_dict(), message="Customer already exists")


@customers_bp.get("/credit")
@require_auth
@require_subscription
@require_permission("VIEW_CREDITS")
def customers_with_credit_route():
    return ok(customer_service.customers_with_dues(get_current_shop_id()))


@customers_bp.get("/<int:customer_id>/sales")
@require_auth
@require_subscription
@require_permission("VIEW_CUSTOMERS")
def customer_sales_route(customer_id: int):
    profile = customer_service.get_customer_profile(get_current_shop_id(), customer_id)
    return ok(profile)
