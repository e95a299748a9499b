"""Content scraping across the configured news sources."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from runway.clients.github_trending import GitHubTrendingClient
from runway.clients.hackernews import HackerNewsClient
from runway.clients.rss import RSSClient
from runway.core.article_store import ArticleStore
from runway.core.scoring import score_articles
from runway.errors import SourceError
from runway.models.content import NewsletterType, ScrapedArticle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScraperSource:
    """A content source and the newsletter types it feeds."""

    name: str
    url: str
    kind: str  # "api", "rss" or "html"
    newsletter_types: Tuple[NewsletterType, ...]


WEEKLY = NewsletterType.WEEKLY_DIGEST
INNOVATION = NewsletterType.INNOVATION_REPORT
CAREERS = NewsletterType.BUSINESS_CAREERS

SOURCES: Tuple[ScraperSource, ...] = (
    ScraperSource(
        "Hacker News",
        "https://hacker-news.firebaseio.com/v0/topstories.json",
        "api",
        (WEEKLY,),
    ),
    ScraperSource(
        "TechCrunch AI",
        "https://techcrunch.com/category/artificial-intelligence/feed/",
        "rss",
        (WEEKLY, CAREERS),
    ),
    ScraperSource(
        "VentureBeat AI",
        "https://venturebeat.com/category/ai/feed/",
        "rss",
        (WEEKLY, INNOVATION),
    ),
    ScraperSource("GitHub Trending", "https://github.com/trending", "html", (INNOVATION,)),
    ScraperSource(
        "Product Hunt AI",
        "https://www.producthunt.com/topics/artificial-intelligence/feed",
        "rss",
        (INNOVATION,),
    ),
    ScraperSource("Papers With Code", "https://paperswithcode.com/feed", "rss", (INNOVATION,)),
    ScraperSource("AI Jobs", "https://ai-jobs.net/feed/", "rss", (CAREERS,)),
    ScraperSource(
        "The Information",
        "https://www.theinformation.com/feed",
        "rss",
        (CAREERS, WEEKLY),
    ),
)


def sources_for(
    newsletter_type: NewsletterType, sources: Tuple[ScraperSource, ...] = SOURCES
) -> List[ScraperSource]:
    newsletter_type = NewsletterType(newsletter_type)
    return [s for s in sources if newsletter_type in s.newsletter_types]


class ScraperService:
    """Fetches, scores and stores articles for a newsletter type.

    Sources are fetched one after another inside a single HTTP session. A
    source that fails is logged and skipped so the rest still contribute.
    """

    def __init__(
        self,
        store: ArticleStore,
        settings=None,
        hackernews: Optional[HackerNewsClient] = None,
        rss: Optional[RSSClient] = None,
        github: Optional[GitHubTrendingClient] = None,
        sources: Tuple[ScraperSource, ...] = SOURCES,
    ):
        self.store = store
        self.sources = sources
        self.hackernews = hackernews or HackerNewsClient(settings)
        self.rss = rss or RSSClient(settings)
        self.github = github or GitHubTrendingClient(settings)

    async def fetch_source(
        self, session: aiohttp.ClientSession, source: ScraperSource
    ) -> List[ScrapedArticle]:
        """Fetch one source with the client matching its kind."""
        if source.kind == "api":
            return await self.hackernews.get_top_stories(session)
        if source.kind == "rss":
            return await self.rss.fetch_feed(session, source.name, source.url)
        if source.kind == "html":
            return await self.github.get_trending(session, source.url)
        raise SourceError(f"Unknown source kind '{source.kind}' for {source.name}")

    async def _collect(
        self, sources: List[ScraperSource]
    ) -> Dict[str, List[ScrapedArticle]]:
        results: Dict[str, List[ScrapedArticle]] = {}
        async with aiohttp.ClientSession() as session:
            for source in sources:
                logger.info(f"🔍 Scraping {source.name}...")
                try:
                    articles = await self.fetch_source(session, source)
                except (aiohttp.ClientError, asyncio.TimeoutError, SourceError, ValueError) as e:
                    logger.error(f"❌ {source.name} failed: {e}")
                    continue
                logger.info(f"✅ {source.name} returned {len(articles)} articles")
                results[source.name] = articles
        return results

    async def scrape_for_newsletter(
        self, newsletter_type: NewsletterType, now: Optional[datetime] = None
    ) -> List[ScrapedArticle]:
        """Scrape every source relevant to a type, score and store the results.

        Returns:
            Scored articles, best first
        """
        newsletter_type = NewsletterType(newsletter_type)
        relevant = sources_for(newsletter_type, self.sources)
        logger.info(
            f"Scraping {len(relevant)} sources for {newsletter_type.value}: "
            f"{', '.join(s.name for s in relevant)}"
        )

        results = await self._collect(relevant)

        seen_urls = set()
        articles: List[ScrapedArticle] = []
        for source_articles in results.values():
            for article in source_articles:
                if article.url in seen_urls:
                    continue
                seen_urls.add(article.url)
                articles.append(article)

        used = self.store.used_urls(a.url for a in articles)
        if used:
            articles = [a for a in articles if a.url not in used]
            logger.info(f"Skipped {len(used)} articles already used in an issue")

        scored = score_articles(articles, newsletter_type, now=now)
        saved = self.store.save_articles(scored)
        logger.info(
            f"Scraped {len(scored)} articles for {newsletter_type.value} "
            f"({saved} new)"
        )
        return scored

    def get_unused_articles(
        self,
        newsletter_type: NewsletterType,
        limit: int = 50,
        now: Optional[datetime] = None,
    ) -> List[ScrapedArticle]:
        """Stored articles no issue has used yet, rescored for this type."""
        articles = self.store.get_unused(limit)
        return score_articles(articles, newsletter_type, now=now)

    def mark_articles_used(self, article_ids: List[str]) -> int:
        return self.store.mark_used(article_ids)

    def mark_urls_used(self, urls: List[str]) -> int:
        return self.store.mark_used_urls(urls)

    async def test_scraping(self) -> Dict[str, Dict[str, Any]]:
        """Fetch the first three sources and report count and a sample title."""
        report: Dict[str, Dict[str, Any]] = {}
        async with aiohttp.ClientSession() as session:
            for source in self.sources[:3]:
                try:
                    articles = await self.fetch_source(session, source)
                except (aiohttp.ClientError, asyncio.TimeoutError, SourceError, ValueError) as e:
                    logger.error(f"❌ {source.name} failed: {e}")
                    report[source.name] = {"count": 0, "sample": None, "error": str(e)}
                    continue
                report[source.name] = {
                    "count": len(articles),
                    "sample": articles[0].title if articles else None,
                }
                logger.info(f"{source.name}: {len(articles)} articles")
        return report
