"""Prompt construction for newsletter copy and cover images.

Everything here is pure string building so it can be tested without any
network access. Given the same request the same prompt comes back.
"""

from typing import List, Sequence, Tuple

from runway.core.scoring import rank_articles
from runway.models.content import ContentGenerationRequest, NewsletterType, ScrapedArticle

MAX_PROMPT_ARTICLES = 20
SNIPPET_LENGTH = 200

SYSTEM_PROMPTS = {
    NewsletterType.WEEKLY_DIGEST: (
        "You are an expert AI newsletter writer creating a comprehensive weekly "
        "digest for executives, investors, and tech leaders.\n"
        "Your writing style is professional, insightful, and data-driven. You "
        "focus on strategic implications and business value.\n"
        "Format the content in clean HTML with proper headings and paragraphs."
    ),
    NewsletterType.INNOVATION_REPORT: (
        "You are a technical AI newsletter writer creating content for "
        "developers, engineers, and technical professionals.\n"
        "Your writing style is technically accurate yet accessible, with "
        "practical examples and code snippets where relevant.\n"
        "Focus on new tools, frameworks, and technical breakthroughs. Format in "
        "HTML with code blocks using <pre> tags."
    ),
    NewsletterType.BUSINESS_CAREERS: (
        "You are a business-focused AI newsletter writer creating content for "
        "professionals, job seekers, and entrepreneurs.\n"
        "Your writing style is practical, inspiring, and action-oriented. Focus "
        "on real-world applications and career opportunities.\n"
        "Include actionable advice and success stories. Format in HTML with "
        "clear sections."
    ),
}

REQUIREMENTS = """Requirements:
- Start with a single <h1> headline that captures this issue
- Length: 2,500 words
- Include an engaging introduction
- Cover 5-7 main topics with analysis
- Add a "Key Takeaways" section
- Include relevant statistics and data points
- Maintain consistent tone for {audience} audience
- Format in clean HTML with <h2> headings, <p> paragraphs and <ul>/<li> lists"""

IMAGE_TOPICS = {
    NewsletterType.WEEKLY_DIGEST: "AI industry landscape and business growth",
    NewsletterType.INNOVATION_REPORT: "cutting-edge AI technology and innovation",
    NewsletterType.BUSINESS_CAREERS: "AI careers and professional development",
}

IMAGE_TYPE_DETAILS = {
    NewsletterType.WEEKLY_DIGEST: (
        "Add subtle business/finance elements like graphs or charts in the background."
    ),
    NewsletterType.INNOVATION_REPORT: (
        "Include code-like elements, circuit patterns, or technical diagrams."
    ),
    NewsletterType.BUSINESS_CAREERS: (
        "Incorporate growth symbols, upward arrows, or career progression elements."
    ),
}

# Checked in order; first keyword found in the topic wins.
TOPIC_ICONS: Tuple[Tuple[str, str], ...] = (
    ("funding", "a stack of glowing coins beside a rising bar chart"),
    ("invest", "a stack of glowing coins beside a rising bar chart"),
    ("career", "a ladder of light climbing toward a horizon"),
    ("job", "a briefcase outlined in neon"),
    ("robot", "a friendly humanoid robot silhouette"),
    ("vision", "a stylised camera lens made of circuitry"),
    ("code", "angle brackets floating over a terminal window"),
    ("open-source", "interlocking gears formed from code brackets"),
    ("research", "a microscope made of wireframe lines"),
    ("model", "a layered neural network of connected nodes"),
    ("technology", "a glowing microchip at the centre of a grid"),
    ("innovation", "a lightbulb filled with circuit traces"),
    ("business", "a city skyline drawn in neon grid lines"),
)
DEFAULT_ICON = "an abstract neural network of glowing nodes"


def system_prompt(newsletter_type: NewsletterType) -> str:
    """Role description for the chat model."""
    return SYSTEM_PROMPTS[NewsletterType(newsletter_type)]


def select_articles(
    articles: Sequence[ScrapedArticle], limit: int = MAX_PROMPT_ARTICLES
) -> List[ScrapedArticle]:
    """Top ``limit`` articles by score with a deterministic tie-break."""
    return rank_articles(articles)[:limit]


def format_article_bullet(article: ScrapedArticle) -> str:
    """One digest line: title, source and a short content snippet."""
    snippet = (article.content or "")[:SNIPPET_LENGTH]
    return f"- {article.title} ({article.source}): {snippet}..."


def build_content_prompt(
    request: ContentGenerationRequest, limit: int = MAX_PROMPT_ARTICLES
) -> str:
    """Build the user prompt for one newsletter issue."""
    newsletter_type = NewsletterType(request.type)
    articles = select_articles(request.scraped_content, limit)
    articles_context = "\n".join(format_article_bullet(a) for a in articles)

    prompt = (
        "Create a compelling newsletter based on these recent AI developments:"
        f"\n\n{articles_context}\n\n"
    )
    prompt += REQUIREMENTS.format(audience=newsletter_type.value)

    if request.sponsor_info:
        prompt += (
            f"\n- Naturally mention our sponsor {request.sponsor_info.name} "
            "where relevant"
        )

    if newsletter_type == NewsletterType.WEEKLY_DIGEST and request.companies_raising:
        names = ", ".join(c.name for c in request.companies_raising)
        prompt += f"\n- Reference some of these funding rounds: {names}"

    if newsletter_type == NewsletterType.BUSINESS_CAREERS and request.companies_hiring:
        names = ", ".join(c.name for c in request.companies_hiring)
        prompt += f"\n- Mention hiring trends from companies like: {names}"

    return prompt


def image_topic(newsletter_type: NewsletterType) -> str:
    return IMAGE_TOPICS[NewsletterType(newsletter_type)]


def icon_for_topic(topic: str) -> str:
    """Map a topic to a cover icon description by substring match."""
    lowered = (topic or "").lower()
    for keyword, icon in TOPIC_ICONS:
        if keyword in lowered:
            return icon
    return DEFAULT_ICON


def build_image_prompt(topic: str, newsletter_type: NewsletterType) -> str:
    """Prompt for the retro-futuristic cover illustration."""
    newsletter_type = NewsletterType(newsletter_type)
    return (
        f"Create a retro-futuristic illustration for an AI newsletter about {topic}.\n"
        "Style: 1980s aesthetic with modern twist, neon gradients (purple, blue, "
        "pink), geometric patterns.\n"
        "Elements: Abstract neural networks, data flows, digital grid patterns.\n"
        f"Central motif: {icon_for_topic(topic)}.\n"
        "Mood: Optimistic, innovative, cutting-edge technology.\n"
        "Composition: Clean, professional, suitable for newsletter header.\n"
        f"{IMAGE_TYPE_DETAILS[newsletter_type]} No text or words in the image."
    )
