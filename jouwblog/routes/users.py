from flask import Blueprint, request, jsonify
import logging

from jouwblog.errors import BlogError
from jouwblog.models import User
from jouwblog.services import registry

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__, url_prefix='/user')


@users_bp.route('/<user_id>', methods=['GET'])
def get_user(user_id):
    try:
        if not user_id.strip():
            return jsonify({'error': 'userId cannot be blank'}), 400

        user = registry.user_service.find_user(user_id)
        if user is None:
            return jsonify({'error': f'User with id {user_id} not found'}), 404

        return jsonify(user.to_dict()), 200

    except Exception as e:
        logger.error(f"Error getting user {user_id}: {e}")
        return jsonify({'error': str(e)}), 500


@users_bp.route('/by-username/<username>', methods=['GET'])
def get_user_by_username(username):
    try:
        user = registry.user_service.find_user_by_username(username)
        if user is None:
            return jsonify({'error': f'User with username {username} not found'}), 404

        return jsonify(user.to_dict()), 200

    except Exception as e:
        logger.error(f"Error getting user by username {username}: {e}")
        return jsonify({'error': str(e)}), 500


@users_bp.route('/', methods=['POST'])
def create_user():
    try:
        data = request.get_json(silent=True)

        if not data:
            return jsonify({'error': 'No data provided'}), 400

        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        user = User(
            username=data.get('username'),
            name=data.get('name'),
            email=data.get('email')
        )

        created = registry.user_service.create_user(user)
        return jsonify(created.to_dict()), 201

    except BlogError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error creating user: {e}")
        return jsonify({'error': str(e)}), 500


@users_bp.route('/<user_id>', methods=['PUT'])
def update_user(user_id):
    try:
        data = request.get_json(silent=True)

        if not data:
            return jsonify({'error': 'No data provided'}), 400

        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        updated = registry.user_service.update_user(user_id, data)
        return jsonify(updated.to_dict()), 200

    except BlogError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error updating user {user_id}: {e}")
        return jsonify({'error': str(e)}), 500


@users_bp.route('/<user_id>', methods=['DELETE'])
def delete_user(user_id):
    try:
        if not registry.user_service.delete_user(user_id):
            return jsonify({'error': f'User with id {user_id} not found'}), 404

        return jsonify({
            'message': 'User deleted successfully',
            'user_id': user_id
        }), 200

    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {e}")
        return jsonify({'error': str(e)}), 500
