"""Read published essays back from the essays tree."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from runway.core.utils import parse_publish_date
from runway.models.content import EssayEntry

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
CONTENT_FILE = "page.mdx"


class EssayLibrary:
    """File-system view over ``{essays_dir}/**/{metadata.json, page.mdx}``."""

    def __init__(self, essays_dir: str):
        self.essays_dir = Path(essays_dir)

    def _essay_dirs(self) -> Iterator[Path]:
        """Yield folders holding both essay files, scanning deeper otherwise."""
        if not self.essays_dir.is_dir():
            return

        pending = [self.essays_dir]
        while pending:
            directory = pending.pop()
            for child in sorted(directory.iterdir()):
                if not child.is_dir():
                    continue
                if (child / METADATA_FILE).is_file() and (child / CONTENT_FILE).is_file():
                    yield child
                else:
                    pending.append(child)

    def _load(self, folder: Path) -> Optional[EssayEntry]:
        mdx_path = folder / CONTENT_FILE
        try:
            metadata = json.loads((folder / METADATA_FILE).read_text(encoding="utf-8"))
            content = mdx_path.read_text(encoding="utf-8")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading essay from {folder}: {e}")
            return None

        if not isinstance(metadata, dict):
            logger.error(f"Error loading essay from {folder}: metadata is not an object")
            return None

        return EssayEntry(metadata=metadata, content=content, mdx_path=str(mdx_path))

    def all(self) -> List[EssayEntry]:
        """All readable essays, newest first by ``publishDate``."""
        entries = [e for e in map(self._load, self._essay_dirs()) if e is not None]

        def sort_key(entry: EssayEntry):
            published = parse_publish_date(str(entry.metadata.get("publishDate", "")))
            if published is None:
                # Undated essays sort last
                return (False, datetime.min)
            return (True, published.replace(tzinfo=None))

        return sorted(entries, key=sort_key, reverse=True)

    def get_by_slug(self, slug: str) -> Optional[EssayEntry]:
        for folder in self._essay_dirs():
            entry = self._load(folder)
            if entry and entry.metadata.get("slug") == slug:
                return entry
        return None

    def search(self, query: str) -> List[EssayEntry]:
        """Case-insensitive substring search over title, description and content.

        A blank query returns every essay.
        """
        entries = self.all()
        term = query.strip().lower()
        if not term:
            return entries

        def matches(entry: EssayEntry) -> bool:
            fields = (
                str(entry.metadata.get("title", "")),
                str(entry.metadata.get("description", "")),
                entry.content,
            )
            return any(term in field.lower() for field in fields)

        return [entry for entry in entries if matches(entry)]

    @staticmethod
    def to_blog_post(entry: EssayEntry) -> Dict[str, Any]:
        """Flatten an essay into the blog post shape used by listing pages."""
        metadata = entry.metadata
        author = metadata.get("author") or {}
        return {
            "title": metadata.get("title", ""),
            "description": metadata.get("description", ""),
            "imageUrl": metadata.get("imageUrl", ""),
            "slug": metadata.get("slug", ""),
            "authorName": author.get("name", ""),
            "authorImageUrl": author.get("imageUrl"),
            "publishDate": metadata.get("publishDate", ""),
            "sponsorInfo": metadata.get("sponsor"),
            "content": entry.content,
        }
