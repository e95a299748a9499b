"""Content models for newsletter automation."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class NewsletterType(str, Enum):
    """Editorial track controlling tone and keyword weighting."""

    WEEKLY_DIGEST = "weekly-digest"
    INNOVATION_REPORT = "innovation-report"
    BUSINESS_CAREERS = "business-careers"


class NewsletterStatus(str, Enum):
    """Lifecycle state of a newsletter."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    SENT = "sent"


class ScrapedArticle(BaseModel):
    """A candidate article pulled from a content source."""

    id: str = Field(..., description="Unique identifier")
    title: str = Field(..., description="Article title")
    content: str = Field("", description="Cleaned text or summary")
    url: str = Field(..., description="Original URL")
    source: str = Field(..., description="Source name")
    published_at: Optional[datetime] = Field(None, description="Publish time")
    relevance_score: float = Field(0.0, description="Heuristic score 0-100")
    tags: List[str] = Field(default_factory=list, description="Tags")
    used: bool = Field(False, description="Consumed by a generation run")


class SponsorInfo(BaseModel):
    """Main sponsor shown at the top of a newsletter."""

    id: str
    name: str
    logo: str = ""
    link: str = ""
    description: str = ""
    cta_text: str = "Learn More"
    cta_link: str = ""
    image_url: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class FundingDetails(BaseModel):
    """Structured funding round information."""

    kind: Literal["parsed"] = "parsed"
    round: Optional[str] = None
    amount: Optional[str] = None
    investors: List[str] = Field(default_factory=list)


class Unparsed(BaseModel):
    """Funding text that could not be turned into structured fields."""

    kind: Literal["unparsed"] = "unparsed"
    raw: str = ""


class CompanyRaising(BaseModel):
    """A company featured in the "Companies Raising" section."""

    id: str
    name: str
    funding: Union[FundingDetails, Unparsed] = Field(default_factory=Unparsed)
    description: str = ""
    link: str = ""
    logo: Optional[str] = None


class CompanyHiring(BaseModel):
    """A company featured in the "Companies Hiring" section."""

    id: str
    name: str
    roles: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    stack: Optional[str] = None
    description: str = ""
    link: str = ""
    logo: Optional[str] = None


class NewsletterMetadata(BaseModel):
    """Generation statistics recorded with a newsletter."""

    scraped_articles: int = 0
    ai_tokens_used: int = 0
    generation_time: float = 0.0
    image_generation_time: float = 0.0
    sources: List[str] = Field(default_factory=list)


class Newsletter(BaseModel):
    """Represents a generated newsletter."""

    id: str = Field(..., description="Identifier, equal to the slug")
    title: str = Field(..., description="Newsletter title")
    slug: str = Field(..., description="URL-safe identifier")
    description: str = Field("", description="Short description")
    content: str = Field(..., description="Generated HTML/MDX content")
    image_url: str = Field("", description="Public cover image path")
    publish_date: datetime = Field(default_factory=datetime.now)
    type: NewsletterType = Field(NewsletterType.WEEKLY_DIGEST)
    status: NewsletterStatus = Field(NewsletterStatus.DRAFT)
    author_name: str = "Infinite Runway"
    author_image_url: str = "/images/authors/infinite-runway.png"
    sponsor_info: Optional[SponsorInfo] = None
    companies_raising: List[CompanyRaising] = Field(default_factory=list)
    companies_hiring: List[CompanyHiring] = Field(default_factory=list)
    metadata: NewsletterMetadata = Field(default_factory=NewsletterMetadata)


class SponsorLineup(BaseModel):
    """Sponsor slots booked for one newsletter issue."""

    main_sponsor: Optional[SponsorInfo] = None
    companies_raising: List[CompanyRaising] = Field(default_factory=list)
    companies_hiring: List[CompanyHiring] = Field(default_factory=list)


class ContentGenerationRequest(BaseModel):
    """Everything the prompt builder needs for one issue."""

    type: NewsletterType
    date: datetime = Field(default_factory=datetime.now)
    scraped_content: List[ScrapedArticle] = Field(default_factory=list)
    sponsor_info: Optional[SponsorInfo] = None
    companies_raising: List[CompanyRaising] = Field(default_factory=list)
    companies_hiring: List[CompanyHiring] = Field(default_factory=list)


class EssayEntry(BaseModel):
    """A published essay as read back from the essays tree."""

    metadata: Dict[str, Any]
    content: str
    mdx_path: str
