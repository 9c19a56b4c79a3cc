# Overview: Flask API routes for the shop's medicine inventory.

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission, require_subscription
from ..responses import json_body, ok
from ..services import medicine_service
from ..services.tenant_service import get_current_shop_id


medicines_bp = Blueprint("medicines", __name__, url_prefix="/api/medicines")


@medicines_bp.get("")
@require_auth
@require_subscription
@require_permission("VIEW_MEDICINES")
def list_medicines_route():
    medicines = medicine_service.search_medicines(get_current_shop_id(), request.args.get("q"))
    return ok([medicine.to_dict() for medicine in medicines])


@medicines_bp.post("")
@require_auth
@require_subscription
@require_permission("MANAGE_MEDICINES")
def add_medicine_route():
    """
    Add a medicine. An existing batch (same name and expiry) is restocked
    instead and returned with 200.
    """
    medicine, created = medicine_service.add_medicine(
        get_current_shop_id(), json_body(), user_id=g.current_user_id,
    )
    if created:
        return ok(medicine.to_dict(), message="Medicine added", status=201)
    return ok(medicine.to_dict(), message="Existing medicine restocked")


@medicines_bp.put("/<int:medicine_id>")
@require_auth
@require_subscription
@require_permission("MANAGE_MEDICINES")
def update_medicine_route(medicine_id: int):
    medicine = medicine_service.update_medicine(
        get_current_shop_id(), medicine_id, json_body(), user_id=g.current_user_id,
    )
    return ok(medicine.to_dict(), message="Medicine updated")


@medicines_bp.put("/update-stock/<int:medicine_id>")
@require_auth
@require_subscription
@require_permission("RESTOCK_MEDICINES")
def update_stock_route(medicine_id: int):
    data = json_body()
    medicine = medicine_service.restock_medicine(
        get_current_shop_id(),
        medicine_id,
        data.get("add_stock", data.get("addStock")),
        expiry=data.get("expiry"),
        user_id=g.current_user_id,
    )
    return ok(medicine.to_dict(), message="Stock updated")
