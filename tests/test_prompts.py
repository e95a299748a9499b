"""Tests for prompt construction."""

from runway.core.prompts import (
    DEFAULT_ICON,
    build_content_prompt,
    build_image_prompt,
    format_article_bullet,
    icon_for_topic,
    image_topic,
    select_articles,
    system_prompt,
)
from runway.models.content import (
    CompanyHiring,
    CompanyRaising,
    ContentGenerationRequest,
    NewsletterType,
    SponsorInfo,
)


def test_empty_article_list_still_has_instructions():
    request = ContentGenerationRequest(type=NewsletterType.WEEKLY_DIGEST)
    prompt = build_content_prompt(request)

    assert prompt.startswith(
        "Create a compelling newsletter based on these recent AI developments:\n\n\n\n"
    )
    assert "Requirements:" in prompt
    assert "2,500 words" in prompt
    assert "Key Takeaways" in prompt
    assert "- " not in prompt.split("Requirements:")[0]


def test_prompt_lists_top_articles_with_snippets(make_article):
    articles = [
        make_article(id=f"a-{i}", title=f"Story {i}", content="x" * 300, relevance_score=i)
        for i in range(25)
    ]
    request = ContentGenerationRequest(
        type=NewsletterType.INNOVATION_REPORT, scraped_content=articles
    )
    prompt = build_content_prompt(request)

    bullets = [line for line in prompt.splitlines() if line.startswith("- Story")]
    assert len(bullets) == 20
    assert bullets[0] == f"- Story 24 (Example Blog): {'x' * 200}..."
    assert "Story 4 " not in prompt


def test_prompt_is_deterministic(sample_articles):
    request = ContentGenerationRequest(
        type=NewsletterType.WEEKLY_DIGEST, scraped_content=sample_articles
    )
    assert build_content_prompt(request) == build_content_prompt(request)


def test_sponsor_and_company_lines():
    sponsor = SponsorInfo(id="s", name="Acme Cloud")
    raising = [CompanyRaising(id="1", name="Nimbus"), CompanyRaising(id="2", name="Orbit")]
    hiring = [CompanyHiring(id="3", name="Talentful")]

    weekly = build_content_prompt(
        ContentGenerationRequest(
            type=NewsletterType.WEEKLY_DIGEST,
            sponsor_info=sponsor,
            companies_raising=raising,
            companies_hiring=hiring,
        )
    )
    assert "our sponsor Acme Cloud" in weekly
    assert "funding rounds: Nimbus, Orbit" in weekly
    assert "Talentful" not in weekly

    careers = build_content_prompt(
        ContentGenerationRequest(
            type=NewsletterType.BUSINESS_CAREERS,
            companies_raising=raising,
            companies_hiring=hiring,
        )
    )
    assert "hiring trends from companies like: Talentful" in careers
    assert "Nimbus" not in careers
    assert "sponsor" not in careers


def test_format_article_bullet(make_article):
    article = make_article(title="GPT-5 ships", source="Hacker News", content="Short")
    assert format_article_bullet(article) == "- GPT-5 ships (Hacker News): Short..."


def test_select_articles_limit(make_article):
    articles = [make_article(id=str(i), relevance_score=i) for i in range(5)]
    assert [a.id for a in select_articles(articles, 2)] == ["4", "3"]


def test_system_prompt_per_type():
    assert "executives" in system_prompt(NewsletterType.WEEKLY_DIGEST)
    assert "developers" in system_prompt(NewsletterType.INNOVATION_REPORT)
    assert "job seekers" in system_prompt(NewsletterType.BUSINESS_CAREERS)


def test_image_prompt_includes_topic_icon_and_type_details():
    topic = image_topic(NewsletterType.BUSINESS_CAREERS)
    prompt = build_image_prompt(topic, NewsletterType.BUSINESS_CAREERS)

    assert topic in prompt
    assert f"Central motif: {icon_for_topic(topic)}." in prompt
    assert "career progression" in prompt
    assert "No text or words in the image." in prompt


def test_icon_for_topic():
    assert "coins" in icon_for_topic("Seed funding news")
    assert "robot" in icon_for_topic("Robotics roundup")
    assert icon_for_topic("") == DEFAULT_ICON
    assert icon_for_topic("gardening") == DEFAULT_ICON
