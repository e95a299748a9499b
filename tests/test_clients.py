"""Tests for the content source and generation clients."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from runway.clients.azure_openai import AzureOpenAIClient
from runway.clients.github_trending import GitHubTrendingClient
from runway.clients.hackernews import HackerNewsClient, item_to_article
from runway.clients.rss import RSSClient, source_prefix
from runway.errors import ConfigurationError, GenerationError
from runway.models.settings import Settings

NOW = datetime(2025, 8, 5, 12, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status=200, json_data=None, text=""):
        self.status = status
        self._json = json_data
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self):
        return self._json

    async def text(self):
        return self._text

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientError(f"HTTP {self.status}")


class FakeSession:
    """Maps URLs to canned responses and records concurrency."""

    def __init__(self, routes):
        self.routes = routes
        self.requested = []
        self.active = 0
        self.max_active = 0

    def get(self, url, **kwargs):
        self.requested.append(url)
        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        return self._tracked(route or FakeResponse(status=404))

    def post(self, url, **kwargs):
        self.requested.append(url)
        self.last_post = kwargs
        return self.routes[url]

    def _tracked(self, response):
        session = self

        class Tracked:
            async def __aenter__(self):
                session.active += 1
                session.max_active = max(session.max_active, session.active)
                await asyncio.sleep(0)
                return response

            async def __aexit__(self, *exc):
                session.active -= 1
                return False

        return Tracked()


RSS_XML = """<?xml version="1.0"?>
<rss version="2.0"><channel>
  <item>
    <title>OpenAI ships a new LLM</title>
    <link>https://news.example/llm</link>
    <guid>abc-1</guid>
    <description>&lt;p&gt;Machine learning &amp;amp; more&lt;/p&gt;</description>
    <pubDate>Mon, 04 Aug 2025 10:00:00 GMT</pubDate>
    <category>Startup</category>
  </item>
  <item>
    <title>No link here</title>
  </item>
  <item>
    <title>Undated story</title>
    <link>https://news.example/undated</link>
  </item>
</channel></rss>"""

ATOM_XML = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <title>Paper: diffusion transformers</title>
    <link rel="alternate" href="https://papers.example/1"/>
    <id>urn:paper:1</id>
    <summary>A research paper</summary>
    <updated>2025-08-03T08:00:00Z</updated>
  </entry>
</feed>"""

RDF_XML = """<?xml version="1.0"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
         xmlns="http://purl.org/rss/1.0/"
         xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel rdf:about="https://arxiv.example/">
    <title>arXiv cs.AI</title>
  </channel>
  <item rdf:about="https://arxiv.example/abs/1">
    <title>Scaling laws for agents</title>
    <link>https://arxiv.example/abs/1</link>
    <description>A study of language model agents</description>
    <dc:date>2025-08-02T09:30:00Z</dc:date>
  </item>
</rdf:RDF>"""

TRENDING_HTML = """
<div>
  <article class="Box-row">
    <h2><a href="/huggingface/transformers"> huggingface /
       transformers </a></h2>
    <p> State-of-the-art machine learning </p>
    <a href="/huggingface/transformers/stargazers">120,000</a>
  </article>
  <article class="Box-row">
    <h2><a href="/someone/tool">someone / tool</a></h2>
  </article>
  <article class="Box-row"><p>row without a link</p></article>
</div>
"""


def test_source_prefix():
    assert source_prefix("TechCrunch AI") == "techcrunch-ai"
    assert source_prefix("Papers With Code") == "papers-with-code"


def test_parse_rss_feed():
    articles = RSSClient().parse_feed(RSS_XML, "TechCrunch AI", now=NOW)

    assert [a.title for a in articles] == ["OpenAI ships a new LLM", "Undated story"]
    first = articles[0]
    assert first.id == "techcrunch-ai-abc-1"
    assert first.content == "Machine learning & more"
    assert first.published_at == datetime(2025, 8, 4, 10, 0, tzinfo=timezone.utc)
    assert "startup" in first.tags
    assert "llm" in first.tags

    undated = articles[1]
    assert undated.id == "techcrunch-ai-https://news.example/undated"
    assert undated.published_at == NOW


def test_parse_atom_feed():
    articles = RSSClient().parse_feed(ATOM_XML, "Papers With Code", now=NOW)

    assert len(articles) == 1
    assert articles[0].url == "https://papers.example/1"
    assert articles[0].id == "papers-with-code-urn:paper:1"
    assert articles[0].published_at == datetime(2025, 8, 3, 8, 0, tzinfo=timezone.utc)


def test_parse_rdf_feed():
    articles = RSSClient().parse_feed(RDF_XML, "Papers With Code", now=NOW)

    assert len(articles) == 1
    article = articles[0]
    assert article.title == "Scaling laws for agents"
    assert article.url == "https://arxiv.example/abs/1"
    assert article.content == "A study of language model agents"
    assert article.published_at == datetime(2025, 8, 2, 9, 30, tzinfo=timezone.utc)


def test_parse_feed_respects_item_limit(mock_settings):
    items = "".join(
        f"<item><title>Story {i}</title><link>https://x.example/{i}</link></item>"
        for i in range(30)
    )
    xml = f"<rss><channel>{items}</channel></rss>"
    assert len(RSSClient(mock_settings).parse_feed(xml, "Feed")) == 20


def test_parse_feed_invalid_xml():
    assert RSSClient().parse_feed("<rss><broken", "Feed") == []


@pytest.mark.asyncio
async def test_fetch_feed_returns_empty_on_http_error():
    session = FakeSession({"https://feed.example/rss": FakeResponse(status=503)})
    assert await RSSClient().fetch_feed(session, "Feed", "https://feed.example/rss") == []


@pytest.mark.asyncio
async def test_fetch_feed_returns_empty_on_network_error():
    session = FakeSession({"https://feed.example/rss": aiohttp.ClientError("boom")})
    assert await RSSClient().fetch_feed(session, "Feed", "https://feed.example/rss") == []


def test_parse_trending():
    articles = GitHubTrendingClient().parse_trending(TRENDING_HTML, now=NOW)

    assert [a.title for a in articles] == ["huggingface/transformers", "someone/tool"]
    first = articles[0]
    assert first.id == "github-huggingface-transformers"
    assert first.url == "https://github.com/huggingface/transformers"
    assert first.content == "State-of-the-art machine learning. Stars: 120,000"
    assert first.source == "GitHub Trending"
    assert "machine-learning" in first.tags
    assert articles[1].content == "Trending repository on GitHub"


def test_item_to_article_without_text():
    article = item_to_article(
        {"id": 42, "title": "Show HN: thing", "by": "pg", "score": 100,
         "descendants": 7, "time": 1754388000, "url": "https://thing.example"}
    )
    assert article.id == "hn-42"
    assert article.content == "Show HN: thing. Posted by pg with 100 points and 7 comments."
    assert article.published_at.tzinfo is not None


def test_item_to_article_text_post_uses_item_page():
    article = item_to_article({"id": 7, "title": "Ask HN: ideas?", "text": "What now?"})
    assert article.url == "https://news.ycombinator.com/item?id=7"
    assert article.content == "What now?"


@pytest.mark.asyncio
async def test_hackernews_bounded_fan_out(mock_settings):
    settings = mock_settings.model_copy(update={"hn_concurrency": 2, "hn_story_limit": 5})
    base = "https://hacker-news.firebaseio.com/v0"
    routes = {f"{base}/topstories.json": FakeResponse(json_data=list(range(1, 10)))}
    for i in range(1, 10):
        routes[f"{base}/item/{i}.json"] = FakeResponse(
            json_data={"id": i, "title": f"Story {i}", "url": f"https://s.example/{i}"}
        )
    # One story fails, one has no url or text
    routes[f"{base}/item/2.json"] = FakeResponse(status=500)
    routes[f"{base}/item/3.json"] = FakeResponse(json_data={"id": 3, "title": "Dead"})

    session = FakeSession(routes)
    articles = await HackerNewsClient(settings).get_top_stories(session)

    assert [a.id for a in articles] == ["hn-1", "hn-4", "hn-5"]
    assert session.max_active <= 2
    assert f"{base}/item/6.json" not in session.requested


def test_azure_client_requires_configuration():
    with pytest.raises(ConfigurationError) as exc_info:
        AzureOpenAIClient(Settings(_env_file=None, azure_openai_endpoint="https://x"))
    assert "azure_openai_api_key" in str(exc_info.value)


def test_azure_urls(mock_settings):
    client = AzureOpenAIClient(mock_settings)
    assert client.chat_url == (
        "https://example.openai.azure.com/openai/deployments/gpt-test/chat/completions"
        "?api-version=2025-01-01-preview"
    )
    assert client.image_url.startswith(
        "https://images.openai.azure.com/openai/deployments/image-test/images/generations"
    )


@pytest.mark.asyncio
async def test_generate_text_payload_and_result(mock_settings):
    client = AzureOpenAIClient(mock_settings)
    response = {"choices": [{"message": {"content": "<h1>Hello</h1>"}}]}

    with patch.object(client, "_post_json", AsyncMock(return_value=response)) as post:
        result = await client.generate_text("prompt", "system")

    assert result == "<h1>Hello</h1>"
    url, payload, headers, timeout = post.call_args.args
    assert url == client.chat_url
    assert payload["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "prompt"},
    ]
    assert payload["temperature"] == 0.7
    assert payload["max_tokens"] == 4000
    assert payload["top_p"] == 0.95
    assert payload["frequency_penalty"] == 0.5
    assert payload["presence_penalty"] == 0.5
    assert headers["api-key"] == "test_key"


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [{}, {"choices": []}, {"choices": [{"message": {"content": ""}}]}])
async def test_generate_text_malformed_payload(mock_settings, response):
    client = AzureOpenAIClient(mock_settings)
    with patch.object(client, "_post_json", AsyncMock(return_value=response)):
        with pytest.raises(GenerationError):
            await client.generate_text("prompt")


@pytest.mark.asyncio
async def test_http_error_carries_status_and_body(mock_settings):
    client = AzureOpenAIClient(mock_settings)
    session = FakeSession({client.chat_url: FakeResponse(status=429, text="rate limited")})
    client.session = session

    with pytest.raises(GenerationError) as exc_info:
        await client.generate_text("prompt")

    assert exc_info.value.status == 429
    assert exc_info.value.body == "rate limited"
    assert "HTTP 429" in str(exc_info.value)


@pytest.mark.asyncio
async def test_generate_image_returns_data_uri_or_url(mock_settings):
    client = AzureOpenAIClient(mock_settings)

    with patch.object(
        client, "_post_json", AsyncMock(return_value={"data": [{"b64_json": "QUJD"}]})
    ):
        assert await client.generate_image("cover") == "data:image/png;base64,QUJD"

    with patch.object(
        client, "_post_json", AsyncMock(return_value={"data": [{"url": "https://img/1.png"}]})
    ) as post:
        assert await client.generate_image("cover") == "https://img/1.png"

    payload = post.call_args.args[1]
    assert payload["n"] == 1
    assert payload["size"] == "1024x1024"
    assert payload["quality"] == "medium"
    assert payload["output_format"] == "png"


@pytest.mark.asyncio
async def test_test_connection(mock_settings):
    client = AzureOpenAIClient(mock_settings)

    with patch.object(client, "_post_json", AsyncMock(return_value={"choices": []})):
        assert await client.test_connection() is True

    with patch.object(
        client, "_post_json", AsyncMock(side_effect=GenerationError("down", status=500))
    ):
        assert await client.test_connection() is False
