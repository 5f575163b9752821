"""
Health check routes
"""

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health():
    """Health check endpoint"""
    client = current_app.model_manager
    return jsonify({
        "status": "healthy",
        "gateway": client.gateway.base_url,
        "busy": client.is_busy()
    })
