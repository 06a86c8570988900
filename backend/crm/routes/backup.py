# Overview: Flask API routes for whole-database backup export, import and clear.

from flask import Blueprint, current_app, jsonify, request

from ..services import backup_service
from ..services.backup_service import BackupError
from ._envelope import error_response


backup_bp = Blueprint("backup", __name__, url_prefix="/api/backup")


@backup_bp.get("/export")
def export_route():
    """Return every table as one snapshot document."""
    try:
        snapshot = backup_service.export_snapshot(
            version=current_app.config.get("BACKUP_FORMAT_VERSION"),
        )
        return jsonify({"success": True, "data": snapshot})
    except Exception as e:
        current_app.logger.exception("Failed to export backup")
        return error_response(e, 500)


@backup_bp.post("/import")
def import_route():
    """
    Merge a snapshot into the database.

    Per-record failures are reported in stats and do not fail the request.
    """
    backup = request.get_json(silent=True)
    if backup is None:
        return jsonify({"success": False, "error": "No backup data provided"}), 400
    if not isinstance(backup, dict):
        return jsonify({"success": False, "error": "Backup data must be a JSON object"}), 400

    try:
        stats = backup_service.import_snapshot(
            backup,
            receipt_policy=current_app.config.get("RECEIPT_IMPORT_POLICY", "increment"),
        )
        return jsonify({
            "success": True,
            "message": "Backup imported successfully",
            "stats": stats,
        })
    except BackupError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception as e:
        current_app.logger.exception("Failed to import backup")
        return error_response(e, 500)


@backup_bp.delete("/clear")
def clear_route():
    try:
        backup_service.clear_all()
        return jsonify({"success": True, "message": "All data cleared successfully"})
    except Exception as e:
        current_app.logger.exception("Failed to clear data")
        return error_response(e, 500)
