from flask import Blueprint, request, jsonify
import logging

from jouwblog.config import config
from jouwblog.errors import BlogError
from jouwblog.models import Post
from jouwblog.services import registry

logger = logging.getLogger(__name__)

posts_bp = Blueprint('posts', __name__, url_prefix='/posts')


@posts_bp.route('/all/<user_id>/<int(signed=True):size>/<int(signed=True):page>', methods=['GET'])
def get_user_posts(user_id, size, page):
    try:
        if not user_id.strip():
            return jsonify({'error': 'userId cannot be blank'}), 400

        if page <= 0 or not config.validate_page_size(size):
            return jsonify({
                'error': f'Page must be positive and size between 1 and {config.MAX_PAGE_SIZE}'
            }), 400

        posts = registry.post_service.find_all_page(user_id, size, page)
        total_count = registry.post_service.count_user_posts(user_id)

        return jsonify({
            'posts': [post.to_dict() for post in posts],
            'count': len(posts),
            'total_count': total_count,
            'page': page,
            'size': size
        }), 200

    except BlogError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error while finding all posts from user {user_id}: {e}")
        return jsonify({'error': str(e)}), 500


@posts_bp.route('/single/<user_id>/<post_id>', methods=['GET'])
def get_post(user_id, post_id):
    try:
        if not user_id.strip() or not post_id.strip():
            return jsonify({'error': 'userId and postId cannot be blank'}), 400

        post = registry.post_service.find_post(post_id, user_id)
        if post is None:
            return jsonify({'error': 'Post not found'}), 404

        return jsonify(post.to_dict()), 200

    except Exception as e:
        logger.error(f"Error while finding post {post_id} from user {user_id}: {e}")
        return jsonify({'error': str(e)}), 500


@posts_bp.route('/', methods=['POST'])
def save_post():
    try:
        data = request.get_json(silent=True)

        if not data:
            return jsonify({'error': 'No data provided'}), 400

        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        post = Post(
            post_id=data.get('post_id'),
            user_id=data.get('user_id'),
            title=data.get('title'),
            text=data.get('text')
        )
        is_update = post.post_id is not None

        saved = registry.post_service.save_post(post)
        if saved is None:
            return jsonify({'error': 'Post not found'}), 404

        return jsonify(saved.to_dict()), 200 if is_update else 201

    except BlogError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error while saving post: {e}")
        return jsonify({'error': str(e)}), 500


@posts_bp.route('/<user_id>/<post_id>/like', methods=['POST'])
def like_post(user_id, post_id):
    try:
        post = registry.post_service.like_post(user_id, post_id)
        if post is None:
            return jsonify({'error': 'Post not found'}), 404

        return jsonify(post.to_dict()), 200

    except Exception as e:
        logger.error(f"Error while liking post {post_id} from user {user_id}: {e}")
        return jsonify({'error': str(e)}), 500


@posts_bp.route('/<user_id>/<post_id>', methods=['DELETE'])
def delete_post(user_id, post_id):
    try:
        if not registry.post_service.delete_post(post_id, user_id):
            return jsonify({'error': 'Post not found'}), 404

        return jsonify({
            'message': 'Post deleted successfully',
            'post_id': post_id
        }), 200

    except Exception as e:
        logger.error(f"Error while deleting post {post_id} from user {user_id}: {e}")
        return jsonify({'error': str(e)}), 500
