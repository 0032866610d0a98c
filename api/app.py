#!/usr/bin/env python3
import logging
from typing import Optional
from flask import Flask, request, jsonify
from flask_cors import CORS

from config.app_config import AppConfig, get_config
from core.dependency_container import initialize_container, get_service, cleanup_container
from core.logging_config import setup_structured_logging, get_logger
from .routes.user_routes import user_bp
from .routes.domain_routes import domain_bp
from .routes.routing_routes import routing_bp
from .routes.config_routes import config_bp
from .routes.system_routes import system_bp
from .routes.backup_routes import backup_bp
from .middleware.error_handler import ErrorHandler

def create_app(config: Optional[AppConfig] = None, start_background: bool = True) -> Flask:
    """
    Creates and configures the Flask application serving the panel API.
    With start_background the usage aggregator starts polling immediately.
    """
    config = config or get_config()
    cleanup_container()
    initialize_container(config)

    app = Flask(__name__)
    app.config['PANEL_CONFIG'] = config

    CORS(app)
    ErrorHandler.init_app(app)

    app.register_blueprint(user_bp, url_prefix='/api/users')
    app.register_blueprint(domain_bp, url_prefix='/api/domains')
    app.register_blueprint(config_bp, url_prefix='/api/config')
    app.register_blueprint(routing_bp, url_prefix='/api')
    app.register_blueprint(system_bp, url_prefix='/api')
    app.register_blueprint(backup_bp, url_prefix='/api')

    @app.after_request
    def disable_user_list_caching(response):
        if request.path.startswith('/api/users'):
            response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
            response.headers['Pragma'] = 'no-cache'
            response.headers['Expires'] = '0'
        return response

    @app.route("/api/health")
    def health_check():
        return jsonify(get_service('system_service').get_health())

    # Build the user service so policy disables are wired to the client sync
    get_service('user_service')
    if start_background:
        get_service('usage_aggregator').start()

    return app


def main() -> None:
    config = get_config()
    setup_structured_logging(config.monitoring.log_level)
    logger = get_logger(__name__)

    app = create_app(config)

    logger.info(
        "Starting Xray panel API server",
        host=config.server.host,
        port=config.server.port,
        threads=config.server.threads,
        users_file=config.paths.users_file
    )

    from waitress import serve

    # Suppress Waitress queue warnings
    logging.getLogger('waitress.queue').setLevel(logging.ERROR)

    try:
        serve(app, host=config.server.host, port=config.server.port, threads=config.server.threads)
    finally:
        cleanup_container()


if __name__ == "__main__":
    main()
