"""Hacker News API client."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from runway.core.scoring import extract_tags
from runway.models.content import ScrapedArticle

logger = logging.getLogger(__name__)

HN_BASE = "https://hacker-news.firebaseio.com/v0"
HN_ITEM_PAGE = "https://news.ycombinator.com/item?id={id}"
SOURCE_NAME = "Hacker News"


def item_to_article(item: Dict[str, Any]) -> ScrapedArticle:
    """Convert a Hacker News item into an article."""
    title = item["title"]
    content = item.get("text") or (
        f"{title}. Posted by {item.get('by', 'unknown')} with "
        f"{item.get('score', 0)} points and {item.get('descendants') or 0} comments."
    )
    published_at = (
        datetime.fromtimestamp(item["time"], tz=timezone.utc) if item.get("time") else None
    )

    return ScrapedArticle(
        id=f"hn-{item['id']}",
        title=title,
        content=content,
        url=item.get("url") or HN_ITEM_PAGE.format(id=item["id"]),
        source=SOURCE_NAME,
        published_at=published_at,
        tags=extract_tags(f"{title} {content}"),
    )


class HackerNewsClient:
    """Client for the Hacker News Firebase API.

    Story details are fetched concurrently, but never more than
    ``concurrency`` requests at a time, and each request has its own
    timeout. A story that fails to load is logged and skipped.
    """

    def __init__(self, settings=None):
        self.story_limit = settings.hn_story_limit if settings else 30
        self.concurrency = settings.hn_concurrency if settings else 8
        self.timeout = settings.source_timeout if settings else 15.0

    async def get_top_stories(self, session: aiohttp.ClientSession) -> List[ScrapedArticle]:
        """Fetch the current top stories as articles."""
        story_ids = await self._get_json(session, f"{HN_BASE}/topstories.json")
        if not isinstance(story_ids, list):
            logger.warning("Hacker News returned no story ids")
            return []

        story_ids = story_ids[: self.story_limit]
        semaphore = asyncio.Semaphore(self.concurrency)

        async def limited_fetch(story_id: int) -> Optional[Dict[str, Any]]:
            async with semaphore:
                return await self._get_item(session, story_id)

        items = await asyncio.gather(*(limited_fetch(i) for i in story_ids))

        articles = [
            item_to_article(item)
            for item in items
            if item and item.get("title") and (item.get("url") or item.get("text"))
        ]
        logger.info(f"Retrieved {len(articles)} Hacker News stories")
        return articles

    async def _get_item(
        self, session: aiohttp.ClientSession, story_id: int
    ) -> Optional[Dict[str, Any]]:
        try:
            return await self._get_json(session, f"{HN_BASE}/item/{story_id}.json")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Failed to fetch Hacker News story {story_id}: {e}")
            return None

    async def _get_json(self, session: aiohttp.ClientSession, url: str) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with session.get(url, timeout=timeout) as response:
            response.raise_for_status()
            return await response.json()
