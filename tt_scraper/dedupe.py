from __future__ import annotations

from dataclasses import dataclass, field

from .post import PostRecord


def dedupe_key(post: PostRecord) -> str:
    return f"id:{post.id}"


@dataclass
class SeenKeys:
    """Post ids already accumulated in the current result set."""

    keys: set[str] = field(default_factory=set)

    def add_post(self, post: PostRecord) -> bool:
        """Add a post; return False if it was already seen."""
        key = dedupe_key(post)
        if key in self.keys:
            return False
        self.keys.add(key)
        return True
