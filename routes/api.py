"""
JSON API over the client state and workflows
"""

import logging
from flask import Blueprint, current_app, jsonify, request

from discoverable import get_discoverable_models
from .ui import ambient_color_scheme

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)

BUSY_MESSAGE = 'Another operation is in progress'


@api_bp.route('/state', methods=['GET'])
def get_state():
    """Current client state snapshot"""
    return jsonify(current_app.model_manager.state.snapshot())


@api_bp.route('/discoverable', methods=['GET'])
def get_discoverable():
    models = get_discoverable_models()
    return jsonify({'models': models, 'count': len(models)})


@api_bp.route('/pending', methods=['PUT'])
def set_pending():
    """Record the model name the user is composing"""
    data = request.get_json(silent=True) or {}
    name = data.get('name', '')
    if not isinstance(name, str):
        return jsonify({'error': 'name must be a string'}), 400
    current_app.model_manager.set_pending_name(name)
    return jsonify({'pending_name': name})


@api_bp.route('/models/refresh', methods=['POST'])
def refresh_models():
    """Start a background refresh of the local model list"""
    client = current_app.model_manager
    try:
        future = client.try_submit_fetch()
    except Exception as e:
        logger.error(f"Error in refresh_models: {e}")
        return jsonify({'error': str(e)}), 500
    if future is None:
        return jsonify({'error': BUSY_MESSAGE}), 409
    return jsonify({'message': 'Refresh started'}), 202


@api_bp.route('/models/pull', methods=['POST'])
def pull_model():
    """
    Start pulling a model in the background.
    Blank names are reported through the state, like the page form.
    """
    client = current_app.model_manager
    data = request.get_json(silent=True) or {}
    name = data.get('name') or ''
    try:
        future = client.try_submit_pull(name)
    except Exception as e:
        logger.error(f"Error in pull_model: {e}")
        return jsonify({'error': str(e)}), 500
    if future is None:
        return jsonify({'error': BUSY_MESSAGE}), 409
    return jsonify({
        'message': f'Pull started for model "{name}". This may take several minutes.'
    }), 202


@api_bp.route('/theme', methods=['GET'])
def get_theme():
    return jsonify({'theme': current_app.theme_manager.current(ambient_color_scheme())})


@api_bp.route('/theme/toggle', methods=['POST'])
def toggle_theme():
    theme_manager = current_app.theme_manager
    theme_manager.current(ambient_color_scheme())
    return jsonify({'theme': theme_manager.toggle()})
