import os
import logging
import click
from logging.handlers import RotatingFileHandler
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from config import config
from extensions import db, migrate, limiter
from utils.db_helpers import enable_sqlite_write_locks
from utils.errors import APIError


def configure_logging(app):
    """Configure application logging"""
    if not app.debug and not app.testing:
        # Create logs directory if it doesn't exist
        if not os.path.exists('logs'):
            os.mkdir('logs')

        # File handler for errors
        file_handler = RotatingFileHandler(
            'logs/estateshare.log',
            maxBytes=10240000,  # 10MB
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s '
            '[in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        app.logger.info('EstateShare startup')
    else:
        # Development logging to console
        app.logger.setLevel(logging.DEBUG)
        app.logger.info('EstateShare startup (DEBUG mode)')


def create_app(config_name=None, config_overrides=None):
    """Application factory pattern"""

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    if config_overrides:
        app.config.update(config_overrides)
    config[config_name].init_app(app)

    # Configure logging
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Import models to ensure they're registered with SQLAlchemy
    with app.app_context():
        import models

    # Register blueprints
    from blueprints.properties import properties_bp
    from blueprints.investments import investments_bp
    from blueprints.reviews import reviews_bp
    from blueprints.dashboard import dashboard_bp

    app.register_blueprint(properties_bp, url_prefix='/properties')
    app.register_blueprint(investments_bp, url_prefix='/investments')
    app.register_blueprint(reviews_bp, url_prefix='/reviews')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')

    # Create database tables
    with app.app_context():
        enable_sqlite_write_locks(db.engine)
        db.create_all()

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_commands(app)

    return app


def register_error_handlers(app):
    """Register global error handlers (JSON bodies throughout)"""

    @app.errorhandler(APIError)
    def api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        db.session.rollback()
        app.logger.error(f'Internal Server Error: {error}', exc_info=error)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500


def register_commands(app):
    """Register Flask CLI commands."""

    @app.cli.group()
    def stats():
        """Inspect and rebuild the property stats cache."""
        pass

    @stats.command('rebuild')
    def rebuild_stats():
        """Rebuild every property's stats from investments and reviews."""
        from services.property_stats_service import PropertyStatsService
        from utils.db_helpers import unit_of_work

        with unit_of_work():
            summary = PropertyStatsService.rebuild_all()
        click.echo(
            f"SUCCESS: rebuilt stats for {summary['properties']} properties "
            f"({summary['created']} created, {summary['orphaned_removed']} orphaned rows removed)."
        )

    @stats.command('show')
    @click.argument('property_id', type=int)
    def show_stats(property_id):
        """Print the cached stats for PROPERTY_ID."""
        from services.property_stats_service import PropertyStatsService

        stats = PropertyStatsService.get_aggregate(property_id)
        if stats is None:
            click.echo(f'ERROR: No stats found for property {property_id}', err=True)
            return
        for key, value in stats.to_dict().items():
            click.echo(f'{key:<26} {value}')


if __name__ == '__main__':
    app = create_app()
    # SECURITY: Only bind to localhost in development
    app.run(host='127.0.0.1', port=5000, debug=True)
