"""
JouwBlog backend: users, posts and comments over MongoDB with Redis and
in-process read-through caches.
"""

__version__ = '0.1.0'
