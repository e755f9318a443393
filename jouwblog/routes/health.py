from flask import Blueprint, jsonify, Response
import logging

from jouwblog import __version__
from jouwblog.services import registry
from jouwblog.services.database import db_service
from jouwblog.services.redis_cache import redis_cache

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__)


@health_bp.route('/', methods=['GET'])
def root():
    return jsonify({
        'service': 'JouwBlog Backend',
        'version': __version__,
        'endpoints': {
            'health': '/health',
            'status': '/status',
            'users': '/user/',
            'posts': '/posts/',
            'comments': '/comments/'
        }
    }), 200


@health_bp.route('/jouwBlog/', methods=['GET'])
def index():
    return Response('Example Response', mimetype='text/plain')


@health_bp.route('/health', methods=['GET'])
def health_check():
    return jsonify({
        'status': 'healthy',
        'service': 'jouwblog-backend'
    }), 200


@health_bp.route('/status', methods=['GET'])
def detailed_status():
    try:
        db_health = db_service.check_health()
        redis_health = redis_cache.check_health()

        # Redis is only a cache tier; losing it degrades, never fails
        if db_health.get('status') != 'healthy':
            status, code = 'unhealthy', 503
        elif redis_health.get('status') != 'healthy':
            status, code = 'degraded', 200
        else:
            status, code = 'healthy', 200

        return jsonify({
            'status': status,
            'database': db_health,
            'redis': redis_health,
            'local_caches': registry.cache_stats()
        }), code

    except Exception as e:
        logger.error(f"Error in status check: {e}")
        return jsonify({
            'status': 'error',
            'error': str(e)
        }), 500
