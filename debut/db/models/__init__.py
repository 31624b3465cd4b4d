from debut.db.models.option import Option
from debut.db.models.post import Post, PostStatus

__all__ = ["Option", "Post", "PostStatus"]
