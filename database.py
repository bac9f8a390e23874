"""
JSON document store for posts and private chats.

Two flat documents back the whole service:
- posts.json: one list holding both room and roommate posts, told apart by
  ``type``. Roommate posts are addressed by ``id``; the admin room routes
  address rooms by their position among ``type == "room"`` records.
- roommate-chats.json: an object mapping a post id to its ordered chat history.

Every mutation loads the whole document, changes it in memory and writes the
whole document back. There is no cache, no lock and no temp-file rename, so
concurrent writers can lose updates and a filtered index can point at a
different record after any insert or delete.
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config import Config


logger = logging.getLogger(__name__)

# Fields a patch may never overwrite
IMMUTABLE_FIELDS = ("id", "type")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid.uuid4())


class JsonStore:
    def __init__(self, posts_path: str, chats_path: str):
        self.posts_path = posts_path
        self.chats_path = chats_path

    # ----------------------- Raw documents -----------------------

    def _read(self, path: str, empty):
        """Parse ``path``, falling back to ``empty`` when it is absent or corrupt."""
        if not os.path.exists(path):
            logger.debug("%s does not exist yet", path)
            return empty()
        try:
            with open(path, "r", encoding="utf-8") as fh:
                raw = fh.read()
            if not raw.strip():
                return empty()
            data = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.error("Error reading %s, serving empty data: %s", path, e)
            return empty()
        if not isinstance(data, type(empty())):
            logger.error("Unexpected %s document in %s, serving empty data", type(data).__name__, path)
            return empty()
        return data

    def _write(self, path: str, data) -> None:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)

    def load_posts(self) -> List[Dict[str, Any]]:
        return self._read(self.posts_path, list)

    def save_posts(self, posts: List[Dict[str, Any]]) -> None:
        self._write(self.posts_path, posts)

    def load_chats(self) -> Dict[str, List[Dict[str, Any]]]:
        return self._read(self.chats_path, dict)

    def save_chats(self, chats: Dict[str, List[Dict[str, Any]]]) -> None:
        self._write(self.chats_path, chats)

    # ----------------------- Read views -----------------------

    def find_by_id(self, post_id: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self.load_posts() if p.get("id") == post_id), None)

    def filter_by_type(self, post_type: str) -> List[Dict[str, Any]]:
        return [p for p in self.load_posts() if p.get("type") == post_type]

    def filter_visible(self, post_type: str) -> List[Dict[str, Any]]:
        return [p for p in self.filter_by_type(post_type) if not p.get("hidden")]

    def resolve_by_filtered_index(self, post_type: str, index: int) -> Optional[Dict[str, Any]]:
        """Return the ``index``-th post of ``post_type`` in storage order.

        The position is recomputed on every call, so it shifts whenever a post
        of the same type is added or removed ahead of it.
        """
        posts = self.filter_by_type(post_type)
        if index < 0 or index >= len(posts):
            return None
        return posts[index]

    # ----------------------- Mutations -----------------------

    def append_post(self, post: Dict[str, Any]) -> Dict[str, Any]:
        posts = self.load_posts()
        posts.append(post)
        self.save_posts(posts)
        logger.info("Stored %s post %s", post.get("type"), post.get("id"))
        return post

    def update_by_id(
        self, post_id: str, patch: Dict[str, Any], post_type: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        posts = self.load_posts()
        for i, post in enumerate(posts):
            if post.get("id") != post_id:
                continue
            if post_type is not None and post.get("type") != post_type:
                continue
            changes = {k: v for k, v in patch.items() if k not in IMMUTABLE_FIELDS}
            posts[i] = {**post, **changes}
            self.save_posts(posts)
            logger.info("Updated post %s (%s)", post_id, ", ".join(sorted(changes)) or "no fields")
            return posts[i]
        return None

    def remove_by_id(self, post_id: str) -> bool:
        posts = self.load_posts()
        remaining = [p for p in posts if p.get("id") != post_id]
        if len(remaining) == len(posts):
            return False
        self.save_posts(remaining)
        logger.info("Deleted post %s", post_id)
        return True

    def append_reply(
        self, post_id: str, reply: Dict[str, Any], post_type: Optional[str] = "roommate"
    ) -> Optional[Dict[str, Any]]:
        posts = self.load_posts()
        post = next((p for p in posts if p.get("id") == post_id), None)
        if post is None or (post_type is not None and post.get("type") != post_type):
            return None
        post.setdefault("replies", []).append(reply)
        self.save_posts(posts)
        return post

    # ----------------------- Chats -----------------------

    def chat_history(self, post_id: str) -> List[Dict[str, Any]]:
        return self.load_chats().get(post_id, [])

    def append_chat_entry(self, post_id: str, entry: Dict[str, Any]) -> List[Dict[str, Any]]:
        chats = self.load_chats()
        history = chats.setdefault(post_id, [])
        history.append(entry)
        self.save_chats(chats)
        return history

    # ----------------------- Diagnostics -----------------------

    def stats(self) -> Dict[str, Any]:
        posts = self.load_posts()
        chats = self.load_chats()
        return {
            "posts_file": "✅ Present" if os.path.exists(self.posts_path) else "❌ Missing",
            "chats_file": "✅ Present" if os.path.exists(self.chats_path) else "❌ Missing",
            "rooms": sum(1 for p in posts if p.get("type") == "room"),
            "roommates": sum(1 for p in posts if p.get("type") == "roommate"),
            "hidden": sum(1 for p in posts if p.get("hidden")),
            "chats": len(chats),
        }


db = JsonStore(Config.POSTS_FILE, Config.CHATS_FILE)
