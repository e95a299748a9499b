"""Tests for the newsletter generation pipeline."""

import json
from datetime import datetime
from unittest.mock import AsyncMock, Mock

import pytest

from runway.core.newsletter import NewsletterGenerator, PipelineContext
from runway.core.publisher import EssayPublisher
from runway.errors import GenerationError
from runway.models.content import NewsletterStatus, NewsletterType

ISSUE_DATE = datetime(2025, 8, 5)
CONTENT = "<h1>The AI Mirror</h1>\n<p>Body about funding.</p>"


@pytest.fixture
def scraper(sample_articles):
    scraper = Mock()
    scraper.scrape_for_newsletter = AsyncMock(return_value=sample_articles)
    scraper.mark_urls_used = Mock(return_value=len(sample_articles))
    return scraper


@pytest.fixture
def llm():
    llm = Mock()
    llm.generate_text = AsyncMock(return_value=f"```html\n{CONTENT}\n```")
    llm.generate_image = AsyncMock(return_value="data:image/png;base64,iVBORw0KGgo=")
    return llm


@pytest.fixture
def context(mock_settings, scraper, llm):
    publisher = EssayPublisher(mock_settings.essays_dir, mock_settings.images_dir)
    return PipelineContext(
        settings=mock_settings, scraper=scraper, llm=llm, publisher=publisher
    )


@pytest.mark.asyncio
async def test_generate_publishes_essay(context, scraper, llm, tmp_path):
    generator = NewsletterGenerator(context)
    newsletter = await generator.generate(NewsletterType.WEEKLY_DIGEST, ISSUE_DATE)

    assert newsletter.title == "The AI Mirror"
    assert newsletter.slug == "the-ai-mirror"
    assert newsletter.content == CONTENT
    assert newsletter.status == NewsletterStatus.DRAFT
    assert newsletter.image_url == "/images/newsletters/the-ai-mirror.png"
    assert newsletter.metadata.scraped_articles == 3
    assert newsletter.metadata.ai_tokens_used == -(-len(CONTENT) // 4)
    assert newsletter.metadata.sources == ["GitHub Trending", "Hacker News", "TechCrunch AI"]

    folder = tmp_path / "essays" / "2025" / "august" / "week-2" / "the-ai-mirror"
    metadata = json.loads((folder / "metadata.json").read_text())
    assert metadata["publishDate"] == "August 5, 2025"
    assert (folder / "the-ai-mirror.png").exists()

    prompt, system = llm.generate_text.call_args.args
    assert "OpenAI raises $500M Series C" in prompt
    assert "executives" in system
    scraper.mark_urls_used.assert_called_once_with(
        ["https://example.com/tc-1", "https://example.com/gh-1", "https://example.com/hn-1"]
    )


@pytest.mark.asyncio
async def test_dry_run_skips_publish_and_mark_used(context, scraper, tmp_path):
    newsletter = await NewsletterGenerator(context).generate(
        "innovation-report", ISSUE_DATE, dry_run=True
    )

    assert newsletter.type == NewsletterType.INNOVATION_REPORT
    assert not (tmp_path / "essays").exists()
    scraper.mark_urls_used.assert_not_called()


@pytest.mark.asyncio
async def test_image_failure_falls_back_to_placeholder(context, llm, tmp_path):
    llm.generate_image.side_effect = GenerationError("no image", status=500)

    newsletter = await NewsletterGenerator(context).generate(
        NewsletterType.WEEKLY_DIGEST, ISSUE_DATE
    )

    assert newsletter.image_url == "/images/thumbnail.svg"
    folder = tmp_path / "essays" / "2025" / "august" / "week-2" / "the-ai-mirror"
    assert (folder / "thumbnail.svg").exists()
    metadata = json.loads((folder / "metadata.json").read_text())
    assert metadata["imageUrl"] == "/images/thumbnail.svg"


@pytest.mark.asyncio
async def test_marks_only_articles_given_to_the_prompt(mock_settings, scraper, llm):
    settings = mock_settings.model_copy(update={"prompt_article_limit": 2})
    publisher = EssayPublisher(settings.essays_dir, settings.images_dir)
    context = PipelineContext(settings=settings, scraper=scraper, llm=llm, publisher=publisher)

    await NewsletterGenerator(context).generate(NewsletterType.WEEKLY_DIGEST, ISSUE_DATE)

    prompt = llm.generate_text.call_args.args[0]
    assert "OpenAI raises $500M Series C" in prompt
    assert "Show HN: a tiny text editor" not in prompt
    scraper.mark_urls_used.assert_called_once_with(
        ["https://example.com/tc-1", "https://example.com/gh-1"]
    )


@pytest.mark.asyncio
async def test_text_generation_failure_propagates(context, llm, scraper, tmp_path):
    llm.generate_text.side_effect = GenerationError("boom", status=500, body="oops")

    with pytest.raises(GenerationError):
        await NewsletterGenerator(context).generate(NewsletterType.WEEKLY_DIGEST, ISSUE_DATE)

    assert not (tmp_path / "essays").exists()
    scraper.mark_urls_used.assert_not_called()


@pytest.mark.asyncio
async def test_untitled_content_uses_dated_title(context, llm):
    llm.generate_text.return_value = "ok\n<p>No headline here</p>"

    newsletter = await NewsletterGenerator(context).generate(
        NewsletterType.WEEKLY_DIGEST, ISSUE_DATE, dry_run=True
    )

    assert newsletter.title == "AI Weekly Digest - August 5, 2025"
    assert newsletter.slug == "ai-weekly-digest-august-5-2025"
    assert "weekly roundup" in newsletter.description


@pytest.mark.asyncio
async def test_sponsor_lineup_flows_into_prompt_and_essay(context, llm, tmp_path):
    sponsors = tmp_path / "sponsors.json"
    sponsors.write_text(
        json.dumps(
            [
                {
                    "date": "2025-08-05",
                    "newsletter_type": "weekly-digest",
                    "slot_type": "main",
                    "sponsor": {"id": 1, "name": "Acme Cloud", "link": "https://acme.example"},
                },
                {
                    "date": "2025-08-05",
                    "newsletter_type": "weekly-digest",
                    "slot_type": "company-raising",
                    "sponsor": {"id": 2, "company_name": "Nimbus", "custom_copy": "$30M Series B"},
                },
            ]
        )
    )
    context.sponsors_file = str(sponsors)

    newsletter = await NewsletterGenerator(context).generate(
        NewsletterType.WEEKLY_DIGEST, ISSUE_DATE
    )

    prompt = llm.generate_text.call_args.args[0]
    assert "our sponsor Acme Cloud" in prompt
    assert "funding rounds: Nimbus" in prompt
    assert newsletter.sponsor_info.name == "Acme Cloud"

    folder = tmp_path / "essays" / "2025" / "august" / "week-2" / "the-ai-mirror"
    assert json.loads((folder / "metadata.json").read_text())["sponsor"]["name"] == "Acme Cloud"
    assert "Nimbus" in (folder / "page.mdx").read_text(encoding="utf-8")


def test_context_from_settings(mock_settings):
    context = PipelineContext.from_settings(mock_settings)

    assert str(context.publisher.essays_dir) == mock_settings.essays_dir
    assert context.scraper.store.db_path.name == "articles.db"
    assert context.llm.settings is mock_settings


@pytest.mark.asyncio
async def test_test_connections(context, llm, scraper):
    llm.test_connection = AsyncMock(return_value=True)
    scraper.test_scraping = AsyncMock(
        return_value={"Hacker News": {"count": 5, "sample": "x"}, "AI Jobs": {"count": 0}}
    )

    results = await NewsletterGenerator(context).test_connections()
    assert results == {"azure_openai": True, "Hacker News": True, "AI Jobs": False}
