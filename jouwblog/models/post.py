from typing import Optional, Dict, Any

from .common import new_id, now_millis, parse_counter, is_text

MAX_TITLE_LENGTH = 200


class Post:
    def __init__(
        self,
        post_id: Optional[str] = None,
        user_id: str = "",
        title: str = "",
        text: str = "",
        post_timestamp: Optional[int] = None,
        update_timestamp: Optional[int] = None,
        likes: int = 0,
        replies: int = 0
    ):
        # post_id stays None until the post is stored, so save_post can tell
        # creates from updates
        self.post_id = post_id
        self.user_id = user_id
        self.title = title
        self.text = text
        self.post_timestamp = post_timestamp
        self.update_timestamp = update_timestamp
        self.likes = likes
        self.replies = replies

    def assign_identity(self):
        now = now_millis()
        self.post_id = self.post_id or new_id()
        self.post_timestamp = now
        self.update_timestamp = now

    def to_dict(self) -> Dict[str, Any]:
        return {
            "post_id": self.post_id,
            "user_id": self.user_id,
            "title": self.title,
            "text": self.text,
            "post_timestamp": self.post_timestamp,
            "update_timestamp": self.update_timestamp,
            "likes": self.likes,
            "replies": self.replies
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Post':
        return Post(
            post_id=data.get('post_id'),
            user_id=data.get('user_id', ''),
            title=data.get('title', ''),
            text=data.get('text', ''),
            post_timestamp=data.get('post_timestamp'),
            update_timestamp=data.get('update_timestamp'),
            likes=data.get('likes', 0),
            replies=data.get('replies', 0)
        )

    def to_hash(self) -> Dict[str, str]:
        return {
            "post_id": self.post_id,
            "user_id": self.user_id,
            "title": self.title,
            "text": self.text,
            "post_timestamp": str(self.post_timestamp),
            "update_timestamp": str(self.update_timestamp),
            "likes": str(self.likes),
            "replies": str(self.replies)
        }

    @staticmethod
    def from_hash(data: Dict[str, str]) -> 'Post':
        if not data.get('post_id') or not data.get('user_id'):
            raise ValueError("Post hash is missing post_id or user_id")
        return Post(
            post_id=data['post_id'],
            user_id=data['user_id'],
            title=data.get('title', ''),
            text=data.get('text', ''),
            post_timestamp=parse_counter(data.get('post_timestamp'), 'post_timestamp'),
            update_timestamp=parse_counter(data.get('update_timestamp'), 'update_timestamp'),
            likes=parse_counter(data.get('likes'), 'likes'),
            replies=parse_counter(data.get('replies'), 'replies')
        )

    def validate(self) -> tuple[bool, Optional[str]]:
        if self.post_id is not None and not is_text(self.post_id):
            return False, "Post ID must be a non-blank string"

        if not is_text(self.user_id):
            return False, "User ID is required"

        if not is_text(self.title):
            return False, "Title is required"

        if len(self.title) > MAX_TITLE_LENGTH:
            return False, f"Title must be at most {MAX_TITLE_LENGTH} characters"

        if not is_text(self.text):
            return False, "Text is required"

        for field in ('likes', 'replies'):
            value = getattr(self, field)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                return False, f"{field.capitalize()} must be a non-negative integer"

        return True, None

    def __eq__(self, other):
        if not isinstance(other, Post):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Post(post_id={self.post_id!r}, user_id={self.user_id!r})"
