# Overview: Flask API routes for downloading the shop's sales as CSV or XLSX.

from flask import Blueprint, Response, g, jsonify

from ..decorators import require_auth, require_permission
from ..services import export_service
from ..services.tenant_service import get_current_shop_id
from pharmatrack.time_utils import utcnow


export_bp = Blueprint("export", __name__, url_prefix="/api/export")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _filename(extension: str) -> str:
    return f"sales_{utcnow().strftime('%Y%m%d_%H%M%S')}.{extension}"


def _no_data():
    return jsonify({"success": False, "message": "No sales data to export"}), 200


@export_bp.get("/sales/csv")
@require_auth
@require_permission("EXPORT_DATA")
def export_sales_csv_route():
    shop_id = get_current_shop_id()
    rows = export_service.sales_rows(shop_id)
    if not rows:
        return _no_data()

    body = export_service.to_csv(rows)
    export_service.record_export(shop_id, "csv", len(rows), user_id=g.current_user_id)
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={_filename('csv')}"},
    )


@export_bp.get("/sales/xlsx")
@require_auth
@require_permission("EXPORT_DATA")
def export_sales_xlsx_route():
    shop_id = get_current_shop_id()
    rows = export_service.sales_rows(shop_id)
    if not rows:
        return _no_data()

    body = export_service.to_xlsx(rows)
    export_service.record_export(shop_id, "xlsx", len(rows), user_id=g.current_user_id)
    return Response(
        body,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": f"attachment; filename={_filename('xlsx')}"},
    )
