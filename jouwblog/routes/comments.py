from flask import Blueprint, request, jsonify
import logging

from jouwblog.config import config
from jouwblog.errors import BlogError
from jouwblog.models import Comment
from jouwblog.services import registry

logger = logging.getLogger(__name__)

comments_bp = Blueprint('comments', __name__, url_prefix='/comments')


@comments_bp.route('/<post_id>/<int(signed=True):size>/<int(signed=True):page>', methods=['GET'])
def get_post_comments(post_id, size, page):
    try:
        if page <= 0 or not config.validate_page_size(size):
            return jsonify({
                'error': f'Page must be positive and size between 1 and {config.MAX_PAGE_SIZE}'
            }), 400

        comments = registry.comment_service.find_comments_page(post_id, size, page)

        return jsonify({
            'comments': [comment.to_dict() for comment in comments],
            'count': len(comments),
            'page': page,
            'size': size
        }), 200

    except BlogError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error getting comments of post {post_id}: {e}")
        return jsonify({'error': str(e)}), 500


@comments_bp.route('/<post_id>/<comment_id>', methods=['GET'])
def get_comment(post_id, comment_id):
    try:
        comment = registry.comment_service.find_comment(post_id, comment_id)
        if comment is None:
            return jsonify({'error': 'Comment not found'}), 404

        return jsonify(comment.to_dict()), 200

    except Exception as e:
        logger.error(f"Error getting comment {comment_id} of post {post_id}: {e}")
        return jsonify({'error': str(e)}), 500


@comments_bp.route('/', methods=['POST'])
def create_comment():
    try:
        data = request.get_json(silent=True)

        if not data:
            return jsonify({'error': 'No data provided'}), 400

        if not isinstance(data, dict):
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        comment = Comment(
            post_id=data.get('post_id'),
            user_id=data.get('user_id'),
            comment_text=data.get('comment_text')
        )

        created = registry.comment_service.create_comment(comment)
        return jsonify(created.to_dict()), 201

    except BlogError as e:
        return jsonify({'error': e.message}), e.status_code
    except Exception as e:
        logger.error(f"Error creating comment: {e}")
        return jsonify({'error': str(e)}), 500


@comments_bp.route('/<post_id>/<comment_id>', methods=['DELETE'])
def delete_comment(post_id, comment_id):
    try:
        if not registry.comment_service.delete_comment(post_id, comment_id):
            return jsonify({'error': 'Comment not found'}), 404

        return jsonify({
            'message': 'Comment deleted successfully',
            'comment_id': comment_id
        }), 200

    except Exception as e:
        logger.error(f"Error deleting comment {comment_id} of post {post_id}: {e}")
        return jsonify({'error': str(e)}), 500
