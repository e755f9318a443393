from flask import Flask, jsonify
from flask_cors import CORS
import logging
import sys

from jouwblog.config import config
from jouwblog.routes import health_bp, users_bp, posts_bp, comments_bp
from jouwblog.services import registry
from jouwblog.services.database import db_service
from jouwblog.services.redis_cache import redis_cache

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )


def create_app():
    app = Flask(__name__)

    CORS(app, resources={r"/*": {"origins": "*"}})

    app.register_blueprint(health_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(posts_bp)
    app.register_blueprint(comments_bp)

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    return app


def main():
    configure_logging()
    logger.info("JouwBlog Backend Starting")
    logger.info(f"Port: {config.FLASK_PORT}")

    try:
        db_health = db_service.check_health()
        if db_health.get('status') == 'healthy':
            logger.info("Database connection successful")
        else:
            logger.error("Database connection failed")
            sys.exit(1)

        db_service.ensure_indexes()

        if redis_cache.check_health().get('status') != 'healthy':
            logger.warning("Redis unreachable, serving from MongoDB and local caches only")

        app = create_app()

        logger.info(f"Starting Flask server on port {config.FLASK_PORT}...")
        app.run(
            host='0.0.0.0',
            port=config.FLASK_PORT,
            debug=config.DEBUG
        )

    except KeyboardInterrupt:
        logger.info("Shutting down...")

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        registry.shutdown()
        sys.exit(1)

    registry.shutdown()


if __name__ == '__main__':
    main()
