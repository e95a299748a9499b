"""Relevance scoring for scraped articles.

Scores are a heuristic in the range 0-100 built from source reputation,
recency, generic AI keywords, newsletter-type keywords and tag count. The
weights are data, kept together in :class:`ScoringWeights` so they can be
tuned without touching the arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from runway.models.content import NewsletterType, ScrapedArticle

COMMON_TAGS = (
    "ai",
    "ml",
    "machine-learning",
    "deep-learning",
    "neural-network",
    "gpt",
    "llm",
    "transformer",
    "diffusion",
    "computer-vision",
    "nlp",
    "robotics",
    "automation",
    "data-science",
    "startup",
    "funding",
    "investment",
    "tech",
    "innovation",
    "research",
)

MAX_SCORE = 100.0


@dataclass(frozen=True)
class ScoringWeights:
    """Hand-tuned weights and keyword lists."""

    source_scores: Dict[str, float] = field(
        default_factory=lambda: {
            "Hacker News": 8,
            "TechCrunch AI": 9,
            "TechCrunch": 9,
            "VentureBeat AI": 8,
            "VentureBeat": 8,
            "GitHub Trending": 7,
            "Product Hunt AI": 7,
            "Papers With Code": 9,
            "The Information": 9,
            "AI Jobs": 6,
        }
    )
    default_source_score: float = 5
    # (max age in hours, bonus), checked in order
    recency_bonuses: Tuple[Tuple[float, float], ...] = ((24, 5), (48, 3), (168, 1))
    ai_keywords: Tuple[str, ...] = (
        "ai",
        "artificial intelligence",
        "machine learning",
        "gpt",
        "llm",
        "neural",
    )
    ai_keyword_weight: float = 2
    type_keywords: Dict[NewsletterType, Tuple[str, ...]] = field(
        default_factory=lambda: {
            NewsletterType.WEEKLY_DIGEST: (
                "funding",
                "investment",
                "startup",
                "acquisition",
                "ipo",
                "revenue",
                "valuation",
            ),
            NewsletterType.INNOVATION_REPORT: (
                "open-source",
                "github",
                "api",
                "sdk",
                "framework",
                "library",
                "tool",
                "release",
            ),
            NewsletterType.BUSINESS_CAREERS: (
                "hiring",
                "job",
                "career",
                "salary",
                "remote",
                "team",
                "culture",
                "growth",
            ),
        }
    )
    type_keyword_multiplier: float = 1.5
    tag_weight: float = 1


DEFAULT_WEIGHTS = ScoringWeights()


def extract_tags(text: str, tags: Iterable[str] = COMMON_TAGS) -> List[str]:
    """Return the known tags that occur in ``text``.

    Matching is a case-insensitive substring test; hyphenated tags also
    match with a space in place of the hyphen.
    """
    lowered = (text or "").lower()
    found: List[str] = []
    for tag in tags:
        if tag in found:
            continue
        if tag in lowered or tag.replace("-", " ") in lowered:
            found.append(tag)
    return found


def _count_matches(text: str, keywords: Iterable[str]) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def _age_in_hours(published_at: Optional[datetime], now: datetime) -> Optional[float]:
    if published_at is None:
        return None
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    return (now - published_at).total_seconds() / 3600


def recency_bonus(
    published_at: Optional[datetime],
    now: Optional[datetime] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Bonus for fresh articles; 0 when the publish time is unknown."""
    now = now or datetime.now(timezone.utc)
    age = _age_in_hours(published_at, now)
    if age is None:
        return 0
    for max_age, bonus in weights.recency_bonuses:
        if age < max_age:
            return bonus
    return 0


def score_article(
    article: ScrapedArticle,
    newsletter_type: NewsletterType,
    now: Optional[datetime] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Compute the relevance score of a single article."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    score = float(weights.source_scores.get(article.source, weights.default_source_score))
    score += recency_bonus(article.published_at, now, weights)

    text = f"{article.title or ''} {article.content or ''}".lower()
    score += _count_matches(text, weights.ai_keywords) * weights.ai_keyword_weight

    type_keywords = weights.type_keywords.get(NewsletterType(newsletter_type), ())
    score += _count_matches(text, type_keywords) * weights.type_keyword_multiplier

    score += len(article.tags or []) * weights.tag_weight

    return max(0.0, min(score, MAX_SCORE))


def _sort_key(article: ScrapedArticle) -> tuple:
    published = article.published_at
    if published is not None and published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    timestamp = published.timestamp() if published is not None else float("-inf")
    # Negate so a single ascending sort gives score desc, date desc, id asc
    return (-article.relevance_score, -timestamp, article.id)


def rank_articles(articles: Iterable[ScrapedArticle]) -> List[ScrapedArticle]:
    """Order already scored articles, highest score first.

    Ties go to the more recently published article (unknown dates last),
    then to the lower id.
    """
    return sorted(articles, key=_sort_key)


def score_articles(
    articles: Iterable[ScrapedArticle],
    newsletter_type: NewsletterType,
    now: Optional[datetime] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> List[ScrapedArticle]:
    """Score every article for ``newsletter_type`` and sort descending.

    Returns copies; the input articles are left untouched.
    """
    now = now or datetime.now(timezone.utc)
    scored = [
        article.model_copy(
            update={"relevance_score": score_article(article, newsletter_type, now, weights)}
        )
        for article in articles
    ]
    return rank_articles(scored)
