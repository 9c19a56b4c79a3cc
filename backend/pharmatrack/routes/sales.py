# Overview: Flask API routes for recording and reading sales.

"""Sales API routes with permission enforcement"""

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission, require_subscription
from ..responses import json_body, ok, pagination_args
from ..services import sales_service
from ..services.tenant_service import get_current_shop_id


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_subscription
@require_permission("CREATE_SALE")
def create_sale_route():
    """
    Record a sale atomically.

    Idempotency: send the same key (Idempotency-Key header or body field
    idempotency_key) when retrying; a replay returns the original sale with 200.
    """
    data = json_body()
    key = request.headers.get("Idempotency-Key") or data.get("idempotency_key")
    sale, created = sales_service.create_sale(
        get_current_shop_id(),
        data,
        user_id=g.current_user_id,
        idempotency_key=key,
    )
    if created:
        return ok(sale.to_dict(), message="Sale recorded", status=201)
    return ok(sale.to_dict(), message="Sale already recorded")


@sales_bp.get("")
@require_auth
@require_subscription
@require_permission("VIEW_SALES")
def list_sales_route():
    limit, offset = pagination_args()
    result = sales_service.list_sales(
        get_current_shop_id(),
        customer_id=request.args.get("customer_id"),
        limit=limit,
        offset=offset,
    )
    return ok(result)


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_subscription
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    return ok(sales_service.get_sale(get_current_shop_id(), sale_id).to_dict())
