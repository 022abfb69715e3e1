# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, current_app, g

from ..decorators import require_auth, require_permission
from ..services import reporting_service
from ..services.tenant_service import resolve_store_id
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/stock-value")
@require_auth
@require_permission("VIEW_REPORTS")
def stock_value_report():
    """
    Stock value received over a date range.

    Query params: start_date, end_date (ISO date or datetime), top, store_id.
    A super admin without store_id gets every store.
    """
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"), required=False)
        report = reporting_service.stock_value_report(
            store_id=store_id,
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
            top=request.args.get("top"),
        )
        return jsonify(report), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to build stock value report")
        return jsonify({"error": "Failed to build report"}), 500


@reports_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_REPORTS")
def low_stock_report():
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"), required=False)
        report = reporting_service.low_stock_report(store_id=store_id)
        return jsonify(report), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400


@reports_bp.get("/inventory")
@require_auth
@require_permission("VIEW_REPORTS")
def inventory_report():
    """
    On-hand stock valued at the piece buying price.

    Query params: stock_status (all|instock|lowstock|outofstock), category_id,
    search, store_id. A super admin without store_id gets every store.
    """
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"), required=False)
        report = reporting_service.inventory_report(
            store_id=store_id,
            stock_status=request.args.get("stock_status"),
            category_id=request.args.get("category_id"),
            search=request.args.get("search"),
        )
        return jsonify(report), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to build inventory report")
        return jsonify({"error": "Failed to build report"}), 500
