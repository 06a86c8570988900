# Overview: Flask API routes for receipts; every write adjusts the project's received total.

from flask import Blueprint, current_app, jsonify, request

from ..services import receipt_service
from ..services.receipt_service import ReceiptError, ReceiptNotFoundError
from ..validation import ValidationError
from ._envelope import error_response


receipts_bp = Blueprint("receipts", __name__, url_prefix="/api/receipts")


@receipts_bp.get("/")
def list_receipts_route():
    receipts = receipt_service.list_receipts()
    return jsonify({"success": True, "data": [r.to_dict() for r in receipts]})


@receipts_bp.get("/<receipt_id>")
def get_receipt_route(receipt_id: str):
    try:
        receipt = receipt_service.get_receipt(receipt_id)
        return jsonify({"success": True, "data": receipt.to_dict()})
    except ReceiptNotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404


@receipts_bp.post("/")
def create_receipt_route():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Receipt data is required"}), 400

    try:
        receipt = receipt_service.create_receipt(data)
        return jsonify({"success": True, "data": receipt.to_dict()}), 201
    except (ReceiptError, ValidationError) as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception as e:
        current_app.logger.exception("Failed to create receipt")
        return error_response(e, 500)


@receipts_bp.post("/bulk")
def bulk_create_receipts_route():
    """Upsert a batch of receipts; rejected entries are left out of the result."""
    data = request.get_json(silent=True)
    receipts = data.get("receipts") if isinstance(data, dict) else None
    if not isinstance(receipts, list):
        return jsonify({"success": False, "error": "receipts must be a list"}), 400

    try:
        saved = receipt_service.bulk_create_receipts(receipts)
        return jsonify({
            "success": True,
            "data": [r.to_dict() for r in saved],
            "count": len(saved),
        })
    except Exception as e:
        current_app.logger.exception("Failed to bulk create receipts")
        return error_response(e, 500)


@receipts_bp.put("/<receipt_id>")
def update_receipt_route(receipt_id: str):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"success": False, "error": "Receipt data is required"}), 400

    try:
        receipt = receipt_service.update_receipt(receipt_id, data)
        return jsonify({"success": True, "data": receipt.to_dict()})
    except ReceiptNotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except (ReceiptError, ValidationError) as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception as e:
        current_app.logger.exception("Failed to update receipt")
        return error_response(e, 500)


@receipts_bp.delete("/<receipt_id>")
def delete_receipt_route(receipt_id: str):
    try:
        receipt_service.delete_receipt(receipt_id)
        return jsonify({"success": True, "message": "Receipt deleted successfully"})
    except ReceiptNotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except Exception as e:
        current_app.logger.exception("Failed to delete receipt")
        return error_response(e, 500)
