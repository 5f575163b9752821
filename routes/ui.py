"""
Page rendering and form actions for the single-page client
"""

import logging
from flask import Blueprint, current_app, redirect, render_template, request, url_for

from discoverable import get_discoverable_models
from utils import format_size, format_modified

logger = logging.getLogger(__name__)

ui_bp = Blueprint('ui', __name__)

COLOR_SCHEME_HINT = 'Sec-CH-Prefers-Color-Scheme'


def ambient_color_scheme():
    """Browser's color-scheme client hint, if it sent one"""
    return request.headers.get(COLOR_SCHEME_HINT)


@ui_bp.route('/')
def index():
    """Render the model manager page from the current state"""
    client = current_app.model_manager
    snapshot = client.state.snapshot()
    for model in snapshot['models']:
        model['size_display'] = format_size(model['size'])
        model['modified_display'] = format_modified(model['modified_at'])

    return render_template(
        'index.html',
        state=snapshot,
        discoverable=get_discoverable_models(),
        local_names={model['name'] for model in snapshot['models']},
        theme=current_app.theme_manager.current(ambient_color_scheme()),
    )


@ui_bp.route('/refresh', methods=['POST'])
def refresh():
    client = current_app.model_manager
    try:
        if client.try_submit_fetch() is None:
            logger.info("[UI] Refresh ignored, an operation is in progress")
    except RuntimeError as e:
        logger.error(f"[UI] Could not start refresh: {e}")
    return redirect(url_for('ui.index'))


@ui_bp.route('/pull', methods=['POST'])
def pull():
    """Pull either a discoverable model (target) or the typed name"""
    client = current_app.model_manager
    target = request.form.get('target')
    if target is None:
        target = request.form.get('name', '')
        client.set_pending_name(target)
    try:
        if client.try_submit_pull(target) is None:
            logger.info("[UI] Pull ignored, an operation is in progress")
    except RuntimeError as e:
        logger.error(f"[UI] Could not start pull of {target!r}: {e}")
    return redirect(url_for('ui.index'))


@ui_bp.route('/theme/toggle', methods=['POST'])
def toggle_theme():
    theme_manager = current_app.theme_manager
    theme_manager.current(ambient_color_scheme())
    theme_manager.toggle()
    return redirect(url_for('ui.index'))
