"""
Data models for the JouwBlog backend.
"""

from .user import User
from .post import Post
from .comment import Comment

__all__ = ['User', 'Post', 'Comment']
