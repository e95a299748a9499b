"""
Scraped article storage for newsletter automation.

Keeps every article the scrapers have seen in a local SQLite file so that
later runs can skip URLs that were already stored and pick up articles
that no issue has used yet.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set

from runway.models.content import ScrapedArticle

logger = logging.getLogger(__name__)


class ArticleStore:
    """SQLite-backed store of scraped articles keyed by URL.

    The UNIQUE constraint on ``url`` makes repeated saves idempotent.
    Concurrent pipeline runs share the file without any extra locking.
    """

    def __init__(self, db_path: str = ".cache/articles.db"):
        """Initialize the store.

        Args:
            db_path: SQLite file; parent directories are created
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(exist_ok=True, parents=True)
        self._init_database()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection that commits on success and is always closed."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_database(self):
        """Create the articles table if it does not exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS scraped_articles (
                    id TEXT PRIMARY KEY,
                    url TEXT UNIQUE NOT NULL,
                    title TEXT NOT NULL,
                    content TEXT,
                    source TEXT NOT NULL,
                    published_at TIMESTAMP,
                    scraped_at TIMESTAMP NOT NULL,
                    relevance_score REAL DEFAULT 0,
                    tags TEXT NOT NULL DEFAULT '[]',
                    used INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_used ON scraped_articles(used)")
            conn.commit()

    def exists(self, url: str) -> bool:
        """Whether an article with this URL has been stored."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM scraped_articles WHERE url = ?", (url,)
            ).fetchone()
        return row is not None

    def save_articles(self, articles: Iterable[ScrapedArticle]) -> int:
        """Store articles whose URL is not known yet.

        Returns:
            Number of newly stored articles
        """
        scraped_at = datetime.now(timezone.utc).isoformat()
        inserted = 0

        with self._connect() as conn:
            for article in articles:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO scraped_articles
                        (id, url, title, content, source, published_at,
                         scraped_at, relevance_score, tags, used)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        article.id,
                        article.url,
                        article.title,
                        article.content,
                        article.source,
                        article.published_at.isoformat() if article.published_at else None,
                        scraped_at,
                        article.relevance_score,
                        json.dumps(article.tags),
                        int(article.used),
                    ),
                )
                inserted += cursor.rowcount
            conn.commit()

        logger.debug(f"Stored {inserted} new articles")
        return inserted

    def get_unused(self, limit: int = 50) -> List[ScrapedArticle]:
        """Most recently scraped articles not yet used by an issue."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM scraped_articles
                WHERE used = 0
                ORDER BY scraped_at DESC, id ASC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [self._row_to_article(row) for row in rows]

    def mark_used(self, article_ids: Iterable[str]) -> int:
        """Flag articles as consumed.

        Returns:
            Number of rows updated
        """
        ids = list(article_ids)
        if not ids:
            return 0

        with self._connect() as conn:
            cursor = conn.executemany(
                "UPDATE scraped_articles SET used = 1 WHERE id = ?",
                [(article_id,) for article_id in ids],
            )
            conn.commit()
            updated = cursor.rowcount

        if updated < len(ids):
            logger.warning(f"⚠️ Only {updated} of {len(ids)} article ids were found to mark used")
        logger.debug(f"Marked {updated} articles as used")
        return updated

    def mark_used_urls(self, urls: Iterable[str]) -> int:
        """Flag articles as consumed by URL.

        The stored row for a URL keeps the id it was first saved under, so
        marking by URL also covers articles re-scraped under a new id.

        Returns:
            Number of rows updated
        """
        unique = list(dict.fromkeys(urls))
        if not unique:
            return 0

        with self._connect() as conn:
            cursor = conn.executemany(
                "UPDATE scraped_articles SET used = 1 WHERE url = ?",
                [(url,) for url in unique],
            )
            conn.commit()
            updated = cursor.rowcount

        if updated < len(unique):
            logger.warning(f"⚠️ Only {updated} of {len(unique)} article URLs are stored")
        logger.debug(f"Marked {updated} articles as used")
        return updated

    def used_urls(self, urls: Iterable[str]) -> Set[str]:
        """The subset of ``urls`` already consumed by an issue."""
        unique = list(dict.fromkeys(urls))
        if not unique:
            return set()

        used = set()
        with self._connect() as conn:
            # stay under SQLite's bound-parameter limit
            for start in range(0, len(unique), 500):
                chunk = unique[start:start + 500]
                placeholders = ", ".join("?" for _ in chunk)
                rows = conn.execute(
                    f"SELECT url FROM scraped_articles WHERE used = 1 AND url IN ({placeholders})",
                    chunk,
                ).fetchall()
                used.update(row["url"] for row in rows)
        return used

    def get(self, article_id: str) -> Optional[ScrapedArticle]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM scraped_articles WHERE id = ?", (article_id,)
            ).fetchone()
        return self._row_to_article(row) if row else None

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM scraped_articles").fetchone()[0]

    @staticmethod
    def _row_to_article(row: sqlite3.Row) -> ScrapedArticle:
        published_at = (
            datetime.fromisoformat(row["published_at"]) if row["published_at"] else None
        )
        return ScrapedArticle(
            id=row["id"],
            title=row["title"],
            content=row["content"] or "",
            url=row["url"],
            source=row["source"],
            published_at=published_at,
            relevance_score=row["relevance_score"] or 0.0,
            tags=json.loads(row["tags"] or "[]"),
            used=bool(row["used"]),
        )
