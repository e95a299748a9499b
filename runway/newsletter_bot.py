"""Command line interface for the newsletter pipeline."""

import asyncio
import logging
import sys
from datetime import datetime

import click

# Heavy dependencies are imported inside the commands so that ``cli`` can be
# loaded (for example to list commands) without touching settings or the
# network stack.

logger = logging.getLogger(__name__)

NEWSLETTER_TYPES = ["weekly-digest", "innovation-report", "business-careers"]


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """AI newsletter pipeline CLI.

    Scrapes AI news sources, generates a newsletter issue with Azure OpenAI
    and publishes it into the website's essays tree.
    """
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    # Set up logging before any other logging calls
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=log_level, force=True)
    logger.debug("Debug mode enabled")


def _fail(ctx: click.Context, message: str, error: Exception) -> None:
    logger.error(f"❌ {message}: {error}")
    if ctx.obj.get("debug"):
        raise error
    sys.exit(1)


@cli.command()
@click.option(
    "--type",
    "newsletter_type",
    type=click.Choice(NEWSLETTER_TYPES),
    default="weekly-digest",
    show_default=True,
    help="Newsletter type to generate",
)
@click.option(
    "--date",
    "issue_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Issue date (YYYY-MM-DD), defaults to today",
)
@click.option("--dry-run", is_flag=True, help="Generate newsletter without publishing")
@click.pass_context
def generate(
    ctx: click.Context, newsletter_type: str, issue_date: datetime, dry_run: bool
) -> None:
    """Generate and publish a newsletter issue."""

    async def _generate():
        from runway.core.newsletter import NewsletterGenerator, PipelineContext
        from runway.models.settings import Settings

        settings = Settings(debug=ctx.obj.get("debug", False))
        generator = NewsletterGenerator(PipelineContext.from_settings(settings))
        return await generator.generate(newsletter_type, issue_date, dry_run=dry_run)

    try:
        newsletter = asyncio.run(_generate())
    except Exception as e:
        _fail(ctx, "Newsletter generation failed", e)
        return

    logger.info(f"📧 Generated newsletter: '{newsletter.title}'")
    logger.info(f"📊 Articles scraped: {newsletter.metadata.scraped_articles}")
    logger.info(f"   - Sources: {', '.join(newsletter.metadata.sources) or 'none'}")
    logger.info(f"   - Estimated tokens: {newsletter.metadata.ai_tokens_used}")
    logger.info(f"   - Generation time: {newsletter.metadata.generation_time:.1f}s")

    content_preview = (
        newsletter.content[:200] + "..."
        if len(newsletter.content) > 200
        else newsletter.content
    )
    logger.info(f"📝 Content preview: {content_preview}")

    click.echo(newsletter.slug)
    if dry_run:
        logger.info("✅ Dry run completed successfully!")
    else:
        logger.info("✅ Newsletter generation completed successfully!")


@cli.command()
@click.option(
    "--type",
    "newsletter_type",
    type=click.Choice(NEWSLETTER_TYPES),
    default="weekly-digest",
    show_default=True,
    help="Newsletter type whose sources are scraped",
)
@click.option("--limit", default=10, show_default=True, help="Articles to show")
@click.pass_context
def scrape(ctx: click.Context, newsletter_type: str, limit: int) -> None:
    """Scrape sources and print the top scored articles."""

    async def _scrape():
        from runway.core.article_store import ArticleStore
        from runway.core.scraper import ScraperService
        from runway.models.settings import Settings

        settings = Settings(debug=ctx.obj.get("debug", False))
        scraper = ScraperService(ArticleStore(settings.database_path), settings)
        return await scraper.scrape_for_newsletter(newsletter_type)

    try:
        articles = asyncio.run(_scrape())
    except Exception as e:
        _fail(ctx, "Scraping failed", e)
        return

    for article in articles[:limit]:
        click.echo(f"{article.relevance_score:5.1f}  [{article.source}] {article.title}")
    click.echo(f"{len(articles)} articles scraped")


@cli.command(name="list")
@click.pass_context
def list_essays(ctx: click.Context) -> None:
    """List published essays, newest first."""
    from runway.core.essays import EssayLibrary
    from runway.models.settings import Settings

    settings = Settings()
    entries = EssayLibrary(settings.essays_dir).all()
    if not entries:
        click.echo("No essays published yet")
        return

    for entry in entries:
        click.echo(
            f"{entry.metadata.get('publishDate', '?'):>20}  "
            f"{entry.metadata.get('slug', '')}  {entry.metadata.get('title', '')}"
        )


@cli.command()
@click.argument("query")
@click.pass_context
def search(ctx: click.Context, query: str) -> None:
    """Search published essays by title, description and content."""
    from runway.core.essays import EssayLibrary
    from runway.models.settings import Settings

    settings = Settings()
    entries = EssayLibrary(settings.essays_dir).search(query)
    for entry in entries:
        click.echo(f"{entry.metadata.get('slug', '')}  {entry.metadata.get('title', '')}")
    click.echo(f"{len(entries)} result(s)")


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Check configuration, the generation endpoint and the first sources."""
    from runway.core.newsletter import NewsletterGenerator, PipelineContext
    from runway.errors import ConfigurationError
    from runway.models.settings import Settings

    settings = Settings()
    logger.info("🔍 Checking system health...")
    logger.info("📋 Configuration:")
    logger.info(f"   - Debug mode: {settings.debug}")
    logger.info(f"   - Log level: {settings.log_level}")
    logger.info(f"   - Text generation configured: {settings.text_generation_configured}")
    logger.info(f"   - Image generation configured: {settings.image_generation_configured}")

    try:
        generator = NewsletterGenerator(PipelineContext.from_settings(settings))
    except ConfigurationError as e:
        _fail(ctx, "Configuration error", e)
        return

    try:
        connections = asyncio.run(generator.test_connections())
    except Exception as e:
        _fail(ctx, "Health check failed", e)
        return

    logger.info("🌐 Connection status:")
    for service, status in connections.items():
        logger.info(f"   - {service}: {'✅' if status else '❌'}")
        click.echo(f"{service}: {'ok' if status else 'failed'}")

    if not all(connections.values()):
        sys.exit(1)


if __name__ == "__main__":
    cli()
