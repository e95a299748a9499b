"""GitHub Trending page scraper."""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

import aiohttp
from bs4 import BeautifulSoup

from runway.core.scoring import extract_tags
from runway.models.content import ScrapedArticle

logger = logging.getLogger(__name__)

TRENDING_URL = "https://github.com/trending"
SOURCE_NAME = "GitHub Trending"


class GitHubTrendingClient:
    """Scrapes repositories from the GitHub Trending page."""

    def __init__(self, settings=None):
        self.item_limit = settings.github_item_limit if settings else 10
        self.timeout = settings.source_timeout if settings else 15.0
        self.user_agent = (
            settings.default_user_agent
            if settings
            else "Mozilla/5.0 (compatible; NewsletterBot/1.0)"
        )

    async def get_trending(
        self, session: aiohttp.ClientSession, url: str = TRENDING_URL
    ) -> List[ScrapedArticle]:
        """Fetch and parse the trending page; empty list on failure."""
        try:
            async with session.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    logger.error(f"Failed to fetch {url}: HTTP {response.status}")
                    return []
                html = await response.text()
        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching {url}")
            return []
        except aiohttp.ClientError as e:
            logger.error(f"Network error fetching {url}: {e}")
            return []

        return self.parse_trending(html)

    def parse_trending(
        self, html: str, now: Optional[datetime] = None
    ) -> List[ScrapedArticle]:
        """Parse repository rows out of the trending page HTML."""
        now = now or datetime.now(timezone.utc)
        soup = BeautifulSoup(html, "html.parser")
        articles = []

        for row in soup.select(".Box-row")[: self.item_limit]:
            link = row.select_one("h2 a")
            if link is None:
                continue

            # "owner /\n  repo" -> "owner/repo"
            title = re.sub(r"\s+", "", link.get_text())
            if not title:
                continue

            description_elem = row.find("p")
            description = (
                description_elem.get_text(" ", strip=True) if description_elem else ""
            )

            stars_elem = row.select_one('a[href$="/stargazers"]')
            stars = stars_elem.get_text(strip=True) if stars_elem else ""

            content = description or "Trending repository on GitHub"
            if stars:
                content = f"{content}. Stars: {stars}"

            repo_id = re.sub(r"[^\w-]", "-", title)
            articles.append(
                ScrapedArticle(
                    id=f"github-{repo_id}",
                    title=title,
                    content=content,
                    url=f"https://github.com{link.get('href', '')}",
                    source=SOURCE_NAME,
                    published_at=now,
                    tags=extract_tags(f"{title} {description}"),
                )
            )

        logger.debug(f"Parsed {len(articles)} trending repositories")
        return articles
