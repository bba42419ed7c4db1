from flask import Blueprint, current_app, jsonify

from blueprints.utils import get_storage, int_arg, dump_all

dashboard_bp = Blueprint('dashboard', __name__)


# --- 📊 DASHBOARD ---
@dashboard_bp.route('/dashboard/stats', methods=['GET'])
def dashboard_stats():
    stats = get_storage().get_dashboard_stats()
    return jsonify({
        "totalSpaces": stats["total_spaces"],
        "occupiedSpaces": stats["occupied_spaces"],
        "availableSpaces": stats["available_spaces"],
        "maintenanceSpaces": stats["maintenance_spaces"],
        "activeRentalsCount": stats["active_rentals_count"],
    })


# --- 📋 ACTIVITY FEED ---
@dashboard_bp.route('/activity-logs', methods=['GET'])
def activity_logs():
    limit = int_arg('limit', default=current_app.config['ACTIVITY_LOG_DEFAULT_LIMIT'], minimum=1)
    return jsonify(dump_all(get_storage().get_all_activity_logs(limit)))


# --- ❤️ HEALTH ---
@dashboard_bp.route('/health', methods=['GET'])
def health():
    """Which backend is in use and whether it answers."""
    storage = get_storage()
    connected = storage.ping()
    return jsonify({
        "status": "ok" if connected else "degraded",
        "db": ("connected" if connected else "disconnected") if storage.backend == 'database' else "not configured",
        "storage": storage.backend,
        "env": current_app.config.get('ENV_NAME'),
    })
