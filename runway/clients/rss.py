"""RSS feed client for retrieving articles from RSS and Atom sources."""

import asyncio
import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional

import aiohttp

from runway.core.scoring import extract_tags
from runway.core.utils import clean_content
from runway.models.content import ScrapedArticle

logger = logging.getLogger(__name__)

ATOM_NS = "{http://www.w3.org/2005/Atom}"
RSS1_NS = "{http://purl.org/rss/1.0/}"
DC_NS = "{http://purl.org/dc/elements/1.1/}"


def source_prefix(source_name: str) -> str:
    """Id prefix for a source, e.g. ``TechCrunch AI`` -> ``techcrunch-ai``."""
    return re.sub(r"\s+", "-", source_name.strip().lower())


class RSSClient:
    """Client for fetching and parsing RSS and Atom feeds."""

    def __init__(self, settings=None):
        """Initialize RSS client.

        Args:
            settings: Settings instance for configuration values
        """
        self.timeout = settings.source_timeout if settings else 15.0
        self.item_limit = settings.rss_item_limit if settings else 20
        self.user_agent = (
            settings.default_user_agent if settings else "NewsletterBot/1.0"
        )

    async def fetch_feed(
        self, session: aiohttp.ClientSession, source_name: str, feed_url: str
    ) -> List[ScrapedArticle]:
        """Fetch and parse a single feed.

        Args:
            session: HTTP session
            source_name: Display name used as the article source
            feed_url: RSS or Atom feed URL

        Returns:
            Parsed articles, or an empty list when the feed cannot be read
        """
        try:
            headers = {"User-Agent": f"{self.user_agent} (RSS Reader)"}
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with session.get(
                feed_url, headers=headers, timeout=timeout
            ) as response:
                if response.status != 200:
                    logger.error(
                        f"Failed to fetch RSS feed {feed_url}: HTTP {response.status}"
                    )
                    return []

                content = await response.text()

        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching RSS feed: {feed_url}")
            return []
        except aiohttp.ClientError as e:
            logger.error(f"Network error fetching RSS feed {feed_url}: {e}")
            return []

        return self.parse_feed(content, source_name, feed_url)

    def parse_feed(
        self,
        xml_content: str,
        source_name: str,
        feed_url: str = "",
        now: Optional[datetime] = None,
    ) -> List[ScrapedArticle]:
        """Parse RSS or Atom XML into articles.

        Items without a title or link are skipped; at most ``item_limit``
        articles are returned.
        """
        now = now or datetime.now(timezone.utc)

        try:
            root = ET.fromstring(xml_content)
        except ET.ParseError as e:
            logger.error(f"XML parsing error for {feed_url or source_name}: {e}")
            return []

        ns = ""
        if root.tag == "rss":
            items = root.findall(".//item")
            is_atom = False
        elif root.tag.endswith("RDF"):
            # RSS 1.0 items and their children live in the RSS 1.0 namespace
            ns = RSS1_NS
            items = root.findall(f".//{RSS1_NS}item")
            is_atom = False
        elif root.tag == f"{ATOM_NS}feed":
            items = root.findall(f".//{ATOM_NS}entry")
            is_atom = True
        else:
            logger.warning(f"Unrecognized feed format for {feed_url or source_name}")
            return []

        articles = []
        for item in items:
            if len(articles) >= self.item_limit:
                break
            try:
                article = self._parse_item(item, source_name, is_atom, now, ns)
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug(f"Error parsing RSS item from {source_name}: {e}")
                continue
            if article is not None:
                articles.append(article)

        logger.debug(f"Parsed {len(articles)} articles from {source_name}")
        return articles

    def _parse_item(
        self,
        item: ET.Element,
        source_name: str,
        is_atom: bool,
        now: datetime,
        ns: str = "",
    ) -> Optional[ScrapedArticle]:
        """Parse a single RSS/Atom item; None when it lacks a title or link."""
        if is_atom:
            title = self._get_text(item.find(f"{ATOM_NS}title"))
            content_elem = item.find(f"{ATOM_NS}content")
            if content_elem is None:
                content_elem = item.find(f"{ATOM_NS}summary")
            description = self._get_text(content_elem)

            link_elem = item.find(f'{ATOM_NS}link[@rel="alternate"]')
            if link_elem is None:
                link_elem = item.find(f"{ATOM_NS}link")
            link = link_elem.get("href", "").strip() if link_elem is not None else ""

            pub_date = self._get_text(item.find(f"{ATOM_NS}published")) or self._get_text(
                item.find(f"{ATOM_NS}updated")
            )
            guid = self._get_text(item.find(f"{ATOM_NS}id"))
            categories = [
                c.get("term", "") for c in item.findall(f"{ATOM_NS}category")
            ]
        else:
            title = self._get_text(item.find(f"{ns}title"))
            description = self._get_text(item.find(f"{ns}description"))
            link = self._get_text(item.find(f"{ns}link"))
            pub_date = self._get_text(item.find("pubDate")) or self._get_text(
                item.find(f"{DC_NS}date")
            )
            guid = self._get_text(item.find("guid"))
            categories = [self._get_text(c) for c in item.findall("category")]

        if not title or not link:
            return None

        tag_text = f"{title} {' '.join(c for c in categories if c)}"
        return ScrapedArticle(
            id=f"{source_prefix(source_name)}-{guid or link}",
            title=title,
            content=clean_content(description),
            url=link,
            source=source_name,
            published_at=self._parse_date(pub_date) or now,
            tags=extract_tags(tag_text),
        )

    def _get_text(self, element: Optional[ET.Element], default: str = "") -> str:
        """Safely get text from XML element."""
        if element is not None and element.text:
            return element.text.strip()
        return default

    def _parse_date(self, date_str: str) -> Optional[datetime]:
        """Parse RFC 822 or ISO 8601 dates; None when neither works."""
        if not date_str:
            return None

        try:
            parsed = parsedate_to_datetime(date_str)
        except (TypeError, ValueError):
            try:
                parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
            except ValueError:
                logger.debug(f"Unparseable feed date: {date_str}")
                return None

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
