from __future__ import annotations

import logging

import requests
from bs4 import BeautifulSoup

from aidjobs.errors import FetchError
from aidjobs.types import PageContent

logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def normalize_url(url: str) -> str:
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


def fetch_page(url: str, timeout_sec: int = 30) -> PageContent:
    url = normalize_url(url)
    try:
        response = requests.get(url, timeout=timeout_sec, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch URL %s: %s", url, exc)
        raise FetchError(f"failed to fetch {url}: {exc}") from exc

    soup = BeautifulSoup(response.text, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else ""
    description = ""
    for attrs in ({"name": "description"}, {"property": "og:description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            description = str(meta["content"]).strip()
            break

    for tag in soup(["script", "style", "noscript"]):
        tag.extract()

    body = soup.body or soup
    text = " ".join(body.get_text(" ").split())
    return PageContent(url=url, title=title, description=description, text=text)


def first_words(text: str, limit: int) -> str:
    return " ".join(text.split()[:limit])


def fetch_organization_context(url: str, *, max_words: int = 500, timeout_sec: int = 30) -> str:
    page = fetch_page(url, timeout_sec=timeout_sec)
    return "\n".join(
        [
            f"Organization: {page.title or 'Organization'}",
            f"Description: {page.description}",
            f"Content: {first_words(page.text, max_words)}",
        ]
    )


def fetch_job_posting(url: str, *, max_words: int = 1000, timeout_sec: int = 30) -> str:
    page = fetch_page(url, timeout_sec=timeout_sec)
    content = first_words(page.text, max_words)
    if not content:
        raise FetchError(f"no readable content at {page.url}")
    return f"Title: {page.title or 'Job Posting'}\n\nContent: {content}"
