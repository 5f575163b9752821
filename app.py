#!/usr/bin/env python3
"""
Model Manager web client
Lists the models available on the backend and pulls new ones through the
reverse-proxied Model Registry Gateway

This is the main application entry point that:
- Builds the client state, gateway and theme manager
- Registers all route blueprints
- Sets up middleware for logging
- Starts the background worker and the server
"""

import atexit
import logging
from flask import Flask, request
from flask_cors import CORS

from config import (
    SERVER_HOST, SERVER_PORT, DEBUG_MODE, GATEWAY_BASE_URL, PREFERENCES_PATH,
    configure_logging,
)
from client_state import ClientState
from gateway import ModelRegistryGateway
from theme import PreferenceStore, ThemeManager
from workflows import ModelManagerClient
from routes import ui_bp, api_bp, health_bp
from routes.ui import COLOR_SCHEME_HINT

logger = logging.getLogger(__name__)


def create_app(gateway=None, preferences_path=None, start=True):
    """
    Application factory function.
    Creates and configures the Flask application.

    Args:
        gateway: Gateway to use instead of one built from configuration
        preferences_path: Where the theme preference is stored
        start: Start the background worker and run the initial fetch
    """
    app = Flask(__name__)
    CORS(app)

    state = ClientState()
    state.subscribe(_log_state_change)
    client = ModelManagerClient(gateway or ModelRegistryGateway(GATEWAY_BASE_URL), state)
    theme_manager = ThemeManager(PreferenceStore(preferences_path or PREFERENCES_PATH))

    # Register blueprints
    app.register_blueprint(ui_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(health_bp, url_prefix='/api')

    # Single owner of the client for routes and teardown
    app.model_manager = client
    app.theme_manager = theme_manager

    register_middleware(app)

    if start:
        client.start()
        logger.info(f"Model manager client started against {client.gateway.base_url}")

    return app


def _log_state_change(state):
    status = f"{state.status.kind}: {state.status.text}" if state.status else "-"
    logger.debug(
        f"[STATE] v{state.version} models={len(state.models)} busy={state.busy} "
        f"pulling={state.pulling_target or '-'} status={status}"
    )


def register_middleware(app):
    """Register request/response middleware"""

    @app.before_request
    def log_request():
        """Log all incoming requests"""
        logger.info(f"[REQUEST] {request.method} {request.path} from {request.remote_addr}")
        if request.method == 'OPTIONS':
            logger.debug(f"[PREFLIGHT] CORS preflight for {request.path}")

    @app.after_request
    def request_color_scheme_hint(response):
        """Ask the browser to send its preferred color scheme"""
        response.headers['Accept-CH'] = COLOR_SCHEME_HINT
        response.vary.add(COLOR_SCHEME_HINT)
        return response


def print_startup_info(app):
    """Print startup information"""
    print("\n" + "=" * 60)
    print("  Model Manager Client")
    print("=" * 60)
    print(f"  Frontend:    http://localhost:{SERVER_PORT}")
    print(f"  Gateway:     {app.model_manager.gateway.base_url}")
    print(f"  Theme:       {app.theme_manager.current()}")
    print("=" * 60 + "\n")


def main():
    configure_logging()
    app = create_app()
    atexit.register(app.model_manager.shutdown)
    print_startup_info(app)

    # The background worker would be started twice under the reloader
    app.run(
        host=SERVER_HOST,
        port=SERVER_PORT,
        debug=DEBUG_MODE,
        use_reloader=False
    )


if __name__ == '__main__':
    main()
