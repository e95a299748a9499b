"""Core newsletter generation logic."""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

import aiohttp

from runway.clients.azure_openai import AzureOpenAIClient
from runway.core.article_store import ArticleStore
from runway.core.prompts import (
    build_content_prompt,
    build_image_prompt,
    image_topic,
    select_articles,
    system_prompt,
)
from runway.core.publisher import DEFAULT_IMAGE_PATH, PUBLIC_IMAGE_PATH, EssayPublisher
from runway.core.scraper import ScraperService
from runway.core.sponsors import load_sponsor_lineup
from runway.core.utils import (
    description_for_title,
    estimate_tokens,
    extract_title_from_content,
    slugify,
    strip_code_fences,
)
from runway.errors import RunwayError
from runway.models.content import (
    ContentGenerationRequest,
    Newsletter,
    NewsletterMetadata,
    NewsletterStatus,
    NewsletterType,
)
from runway.models.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Collaborators used by one pipeline run."""

    settings: Settings
    scraper: ScraperService
    llm: AzureOpenAIClient
    publisher: EssayPublisher
    sponsors_file: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineContext":
        """Wire the default collaborators from settings.

        Raises:
            ConfigurationError: when text generation is not configured
        """
        store = ArticleStore(settings.database_path)
        return cls(
            settings=settings,
            scraper=ScraperService(store, settings),
            llm=AzureOpenAIClient(settings),
            publisher=EssayPublisher(
                settings.essays_dir, settings.images_dir, timeout=settings.image_timeout
            ),
            sponsors_file=settings.sponsors_file,
        )


class NewsletterGenerator:
    """Runs the scrape, generate, publish pipeline for one issue."""

    def __init__(self, context: PipelineContext):
        """Initialize newsletter generator.

        Args:
            context: Settings plus scraper, generation client and publisher
        """
        self.context = context
        self.settings = context.settings
        self.scraper = context.scraper
        self.llm = context.llm
        self.publisher = context.publisher

        logger.info("📋 Pipeline configuration:")
        logger.info(f"   - Essays: {self.publisher.essays_dir}")
        logger.info(f"   - Images: {self.publisher.images_dir}")
        logger.info(
            f"   - Image generation: "
            f"{'✅ Enabled' if self.settings.image_generation_configured else '❌ Disabled (placeholder cover)'}"
        )
        logger.info(
            f"   - Sponsors: {context.sponsors_file or '❌ None (no sponsor slots)'}"
        )

    async def test_connections(self) -> Dict[str, bool]:
        """Check the generation endpoint and the first content sources."""
        results = {"azure_openai": await self.llm.test_connection()}
        report = await self.scraper.test_scraping()
        for name, entry in report.items():
            results[name] = entry["count"] > 0
        return results

    async def _generate_cover(self, newsletter_type: NewsletterType, slug: str) -> str:
        """Generate and save the cover image; placeholder path on any failure."""
        prompt = build_image_prompt(image_topic(newsletter_type), newsletter_type)
        try:
            image = await self.llm.generate_image(prompt)
            await self.publisher.save_image(image, slug)
        except (RunwayError, aiohttp.ClientError, asyncio.TimeoutError, ValueError, OSError) as e:
            logger.warning(f"⚠️ Image generation failed, using placeholder: {e}")
            return DEFAULT_IMAGE_PATH
        return PUBLIC_IMAGE_PATH.format(slug=slug)

    async def generate(
        self,
        newsletter_type: NewsletterType = NewsletterType.WEEKLY_DIGEST,
        date: Optional[datetime] = None,
        dry_run: bool = False,
    ) -> Newsletter:
        """Generate a complete newsletter.

        Args:
            newsletter_type: Which issue to produce
            date: Issue date, today when omitted
            dry_run: If True, nothing is published and no article is marked used

        Returns:
            The generated newsletter

        Raises:
            GenerationError: when the text generation call fails
        """
        newsletter_type = NewsletterType(newsletter_type)
        date = date or datetime.now()
        start_time = time.time()
        logger.info(
            f"🚀 Generating {newsletter_type.value} for {date:%Y-%m-%d} (dry_run={dry_run})"
        )

        articles = await self.scraper.scrape_for_newsletter(newsletter_type)
        logger.info(f"📰 {len(articles)} articles scraped")

        lineup = load_sponsor_lineup(self.context.sponsors_file, date, newsletter_type)

        request = ContentGenerationRequest(
            type=newsletter_type,
            date=date,
            scraped_content=articles,
            sponsor_info=lineup.main_sponsor,
            companies_raising=lineup.companies_raising,
            companies_hiring=lineup.companies_hiring,
        )
        prompt = build_content_prompt(request, self.settings.prompt_article_limit)

        logger.info("✍️ Generating newsletter content...")
        content = await self.llm.generate_text(prompt, system_prompt(newsletter_type))
        content = strip_code_fences(content)
        generation_time = time.time() - start_time

        title = extract_title_from_content(content, date)
        slug = slugify(title) or f"{newsletter_type.value}-{date:%Y-%m-%d}"
        description = description_for_title(title)
        logger.info(f"📝 Title: {title}")

        logger.info("🎨 Generating cover image...")
        image_start = time.time()
        image_url = await self._generate_cover(newsletter_type, slug)
        image_generation_time = time.time() - image_start

        newsletter = Newsletter(
            id=slug,
            title=title,
            slug=slug,
            description=description,
            content=content,
            image_url=image_url,
            publish_date=date,
            type=newsletter_type,
            status=NewsletterStatus.DRAFT,
            author_name=self.settings.author_name,
            author_image_url=self.settings.author_image_url,
            sponsor_info=lineup.main_sponsor,
            companies_raising=lineup.companies_raising,
            companies_hiring=lineup.companies_hiring,
            metadata=NewsletterMetadata(
                scraped_articles=len(articles),
                ai_tokens_used=estimate_tokens(content),
                generation_time=generation_time,
                image_generation_time=image_generation_time,
                sources=sorted({a.source for a in articles}),
            ),
        )

        if dry_run:
            logger.info("🔍 DRY RUN MODE - newsletter not published")
            return newsletter

        folder = self.publisher.publish(newsletter)
        logger.info(f"✅ Published to {folder}")

        used = select_articles(articles, self.settings.prompt_article_limit)
        self.scraper.mark_urls_used([a.url for a in used])
        logger.info(f"✅ Marked {len(used)} articles as used")

        return newsletter
