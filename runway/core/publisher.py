"""Essay publisher writing newsletters into the website's essays tree.

Layout (read by the site's file-system loader, see :mod:`runway.core.essays`)::

    {essays_dir}/{year}/{month}/week-{n}/{slug}/metadata.json
    {essays_dir}/{year}/{month}/week-{n}/{slug}/page.mdx

Files are written one after another with no rollback, so a crash can leave
a folder with only some of its files.
"""

import base64
import binascii
import html
import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp

from runway.core.utils import format_publish_date, month_name, week_of_month
from runway.models.content import (
    CompanyHiring,
    CompanyRaising,
    FundingDetails,
    Newsletter,
)

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image/png;base64,"
DEFAULT_IMAGE_PATH = "/images/thumbnail.svg"
PUBLIC_IMAGE_PATH = "/images/newsletters/{slug}.png"


def essay_folder(essays_dir: Path, newsletter: Newsletter) -> Path:
    """Folder for a newsletter: ``{year}/{month}/week-{n}/{slug}``."""
    date = newsletter.publish_date
    return (
        Path(essays_dir)
        / str(date.year)
        / month_name(date)
        / f"week-{week_of_month(date)}"
        / newsletter.slug
    )


def build_metadata(newsletter: Newsletter) -> Dict[str, Any]:
    """The ``metadata.json`` document for a newsletter."""
    date = newsletter.publish_date
    metadata: Dict[str, Any] = {
        "title": newsletter.title,
        "description": newsletter.description,
        "slug": newsletter.slug,
        "author": {
            "name": newsletter.author_name,
            "imageUrl": newsletter.author_image_url,
        },
        "publishDate": format_publish_date(date),
        "imageUrl": newsletter.image_url or PUBLIC_IMAGE_PATH.format(slug=newsletter.slug),
    }

    sponsor = newsletter.sponsor_info
    if sponsor:
        metadata["sponsor"] = {
            "name": sponsor.name,
            "logo": sponsor.logo,
            "link": sponsor.link,
            "description": sponsor.description,
            "ctaText": sponsor.cta_text,
            "ctaLink": sponsor.cta_link,
        }

    metadata.update(
        {
            "type": "newsletter",
            "week": week_of_month(date),
            "month": month_name(date),
            "year": date.year,
        }
    )
    return metadata


def _funding_line(company: CompanyRaising) -> str:
    funding = company.funding
    if isinstance(funding, FundingDetails):
        parts = [p for p in (funding.round, funding.amount) if p]
        line = f"**{' - '.join(parts)}**" if parts else ""
        if funding.investors:
            line += f"\n\nInvestors: {', '.join(funding.investors)}"
        return line
    return funding.raw


def render_companies_raising(companies: List[CompanyRaising]) -> str:
    """Markdown section listing companies raising."""
    if not companies:
        return ""

    blocks = ["\n\n## 💰 Companies Raising\n"]
    for company in companies:
        block = [f"### {company.name}"]
        funding = _funding_line(company)
        if funding:
            block.append(funding)
        if company.description and company.description != funding:
            block.append(company.description)
        if company.link:
            block.append(f"[Learn more →]({company.link})")
        blocks.append("\n\n".join(block))
    return "\n\n".join(blocks) + "\n"


def render_companies_hiring(companies: List[CompanyHiring]) -> str:
    """Markdown section listing companies hiring."""
    if not companies:
        return ""

    blocks = ["\n\n## 👥 Companies Hiring\n"]
    for company in companies:
        block = [f"### {company.name}"]
        if company.roles:
            block.append(f"**Open Roles:** {', '.join(company.roles)}")
        if company.location:
            block.append(f"**Location:** {company.location}")
        if company.stack:
            block.append(f"**Tech Stack:** {company.stack}")
        if company.description:
            block.append(company.description)
        if company.link:
            block.append(f"[View jobs →]({company.link})")
        blocks.append("\n\n".join(block))
    return "\n\n".join(blocks) + "\n"


def placeholder_svg(title: str) -> str:
    """Simple dark thumbnail with the title, used when no image is available."""
    return (
        '<svg width="600" height="400" xmlns="http://www.w3.org/2000/svg">\n'
        '  <rect width="600" height="400" fill="#1a1a2e"/>\n'
        '  <text x="300" y="200" text-anchor="middle" font-family="Arial" '
        f'font-size="24" fill="white">{html.escape(title)}</text>\n'
        "</svg>\n"
    )


class EssayPublisher:
    """Writes generated newsletters into the essays tree."""

    def __init__(self, essays_dir: str, images_dir: str, timeout: float = 60.0):
        """Initialize the publisher.

        Args:
            essays_dir: Root of the essays tree
            images_dir: Directory holding generated ``{slug}.png`` covers
            timeout: Download timeout for image URLs
        """
        self.essays_dir = Path(essays_dir)
        self.images_dir = Path(images_dir)
        self.timeout = timeout

    def image_path(self, slug: str) -> Path:
        return self.images_dir / f"{slug}.png"

    async def save_image(
        self,
        image: str,
        slug: str,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> Path:
        """Store a generated cover as ``{images_dir}/{slug}.png``.

        Args:
            image: ``data:image/png;base64,...`` URI or an http(s) URL
            slug: Newsletter slug used as the file name
            session: Optional HTTP session for URL downloads

        Returns:
            Path of the written file
        """
        target = self.image_path(slug)
        target.parent.mkdir(parents=True, exist_ok=True)

        if image.startswith(DATA_URI_PREFIX):
            try:
                data = base64.b64decode(image[len(DATA_URI_PREFIX):], validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"Invalid base64 image data: {e}") from e
            target.write_bytes(data)
            logger.info(f"✅ Saved base64 image: {target.name}")
            return target

        data = await self._download(image, session)
        target.write_bytes(data)
        logger.info(f"✅ Downloaded image from URL: {target.name}")
        return target

    async def _download(
        self, url: str, session: Optional[aiohttp.ClientSession]
    ) -> bytes:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        if session is not None:
            async with session.get(url, timeout=timeout) as response:
                response.raise_for_status()
                return await response.read()

        async with aiohttp.ClientSession() as own_session:
            async with own_session.get(url, timeout=timeout) as response:
                response.raise_for_status()
                return await response.read()

    def publish(self, newsletter: Newsletter) -> Path:
        """Write ``metadata.json`` and ``page.mdx`` and attach the cover.

        The previously saved cover is copied into the folder; when it is
        missing a ``thumbnail.svg`` placeholder is written instead.

        Returns:
            The essay folder
        """
        folder = essay_folder(self.essays_dir, newsletter)
        folder.mkdir(parents=True, exist_ok=True)

        metadata_path = folder / "metadata.json"
        metadata_path.write_text(
            json.dumps(build_metadata(newsletter), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

        content = newsletter.content
        content += render_companies_raising(newsletter.companies_raising)
        content += render_companies_hiring(newsletter.companies_hiring)
        (folder / "page.mdx").write_text(content, encoding="utf-8")

        source_image = self.image_path(newsletter.slug)
        try:
            shutil.copyfile(source_image, folder / source_image.name)
            logger.info(f"✅ Copied generated image: {source_image.name}")
        except OSError as e:
            logger.warning(f"Could not copy generated image ({e}), creating placeholder")
            (folder / "thumbnail.svg").write_text(
                placeholder_svg(newsletter.title), encoding="utf-8"
            )

        logger.info(f"✅ Newsletter files created in: {folder}")
        return folder
