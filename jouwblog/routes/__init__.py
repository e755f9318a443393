"""
API routes for the JouwBlog backend.
"""

from .health import health_bp
from .users import users_bp
from .posts import posts_bp
from .comments import comments_bp

__all__ = ['health_bp', 'users_bp', 'posts_bp', 'comments_bp']
