from datetime import datetime, timedelta, timezone

import pytest

from runway.models.content import ScrapedArticle

NOW = datetime(2025, 8, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def mock_settings(tmp_path):
    """Settings with fake Azure credentials and output under tmp_path."""
    from runway.models.settings import Settings

    return Settings(
        _env_file=None,
        azure_openai_endpoint="https://example.openai.azure.com/",
        azure_openai_api_key="test_key",
        azure_openai_deployment_name="gpt-test",
        azure_image_endpoint="https://images.openai.azure.com",
        azure_image_api_key="test_image_key",
        azure_image_deployment_name="image-test",
        essays_dir=str(tmp_path / "essays"),
        images_dir=str(tmp_path / "images"),
        database_path=str(tmp_path / "db" / "articles.db"),
    )


@pytest.fixture
def make_article():
    """Factory for articles with sensible defaults."""

    def _make(
        id="a-1",
        title="Generic headline",
        content="Some content",
        source="Example Blog",
        hours_old=1,
        url=None,
        **kwargs,
    ):
        published_at = None if hours_old is None else NOW - timedelta(hours=hours_old)
        return ScrapedArticle(
            id=id,
            title=title,
            content=content,
            url=url or f"https://example.com/{id}",
            source=source,
            published_at=published_at,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_articles(make_article):
    return [
        make_article(
            id="tc-1",
            title="OpenAI raises $500M Series C",
            content="The AI startup announced new funding led by major investors.",
            source="TechCrunch AI",
            hours_old=2,
        ),
        make_article(
            id="gh-1",
            title="huggingface/transformers",
            content="State-of-the-art machine learning. Stars: 120k",
            source="GitHub Trending",
            hours_old=30,
        ),
        make_article(
            id="hn-1",
            title="Show HN: a tiny text editor",
            content="A small editor written over a weekend.",
            source="Hacker News",
            hours_old=100,
        ),
    ]
