from typing import Optional, Dict, Any

from .common import new_id, now_millis, parse_counter, is_text

MAX_COMMENT_LENGTH = 2000


class Comment:
    def __init__(
        self,
        comment_id: Optional[str] = None,
        post_id: str = "",
        user_id: str = "",
        comment_text: str = "",
        comment_timestamp: Optional[int] = None,
        likes: int = 0
    ):
        self.comment_id = comment_id
        self.post_id = post_id
        self.user_id = user_id
        self.comment_text = comment_text
        self.comment_timestamp = comment_timestamp
        self.likes = likes

    def assign_identity(self):
        self.comment_id = self.comment_id or new_id()
        self.comment_timestamp = now_millis()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comment_id": self.comment_id,
            "post_id": self.post_id,
            "user_id": self.user_id,
            "comment_text": self.comment_text,
            "comment_timestamp": self.comment_timestamp,
            "likes": self.likes
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'Comment':
        return Comment(
            comment_id=data.get('comment_id'),
            post_id=data.get('post_id', ''),
            user_id=data.get('user_id', ''),
            comment_text=data.get('comment_text', ''),
            comment_timestamp=data.get('comment_timestamp'),
            likes=data.get('likes', 0)
        )

    def to_hash(self) -> Dict[str, str]:
        return {
            "comment_id": self.comment_id,
            "post_id": self.post_id,
            "user_id": self.user_id,
            "comment_text": self.comment_text,
            "comment_timestamp": str(self.comment_timestamp),
            "likes": str(self.likes)
        }

    @staticmethod
    def from_hash(data: Dict[str, str]) -> 'Comment':
        if not data.get('comment_id') or not data.get('post_id'):
            raise ValueError("Comment hash is missing comment_id or post_id")
        return Comment(
            comment_id=data['comment_id'],
            post_id=data['post_id'],
            user_id=data.get('user_id', ''),
            comment_text=data.get('comment_text', ''),
            comment_timestamp=parse_counter(data.get('comment_timestamp'), 'comment_timestamp'),
            likes=parse_counter(data.get('likes'), 'likes')
        )

    def validate(self) -> tuple[bool, Optional[str]]:
        if not is_text(self.post_id):
            return False, "Post ID is required"

        if not is_text(self.user_id):
            return False, "User ID is required"

        if not is_text(self.comment_text):
            return False, "Comment text is required"

        if len(self.comment_text) > MAX_COMMENT_LENGTH:
            return False, f"Comment text must be at most {MAX_COMMENT_LENGTH} characters"

        if not isinstance(self.likes, int) or isinstance(self.likes, bool) or self.likes < 0:
            return False, "Likes must be a non-negative integer"

        return True, None

    def __eq__(self, other):
        if not isinstance(other, Comment):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Comment(comment_id={self.comment_id!r}, post_id={self.post_id!r})"
