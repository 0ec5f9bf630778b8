"""
Feature Extractor

Turns raw HTML, the page URL and robots.txt into a compact FeatureDocument
for the scoring oracle.

Two independent parse trees are used:
- The full document, read-only, for whole-page signals (head metadata,
  JSON-LD, links, media, headings, hreflang/canonical counts)
- The readability-isolated main content, re-parsed on its own, for body
  text statistics (word-bounded text, sentence lengths)

No sub-extraction is allowed to fail the pass: each one degrades to its
default value and logs the reason.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, TypeVar
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from readability import Document

from aeo.constants import (
    AUTHOR_META_SELECTOR,
    BYLINE_SELECTOR,
    DEFAULT_MAX_WORDS,
    DEFAULT_SCHEMA_CAP,
    HEAD_SELECTORS,
    IMAGE_SELECTOR,
    LONG_HEADING_WORDS,
    MAX_BAD_ALT_SAMPLES,
    MIN_GOOD_ALT_WORDS,
    SECONDS_PER_DAY,
    SUMMARY_SELECTORS,
    WIKI_FAMILY_HOSTS,
)
from aeo.models import (
    AnswerUpfrontMetrics,
    EEATMetrics,
    ExtractionMetrics,
    FeatureDocument,
    FreshnessMetrics,
    LangMetaMetrics,
    MediaMetrics,
    SnippetConcisenessMetrics,
    SpeakableMetrics,
    StructuredDataMetrics,
)
from aeo.robots import summarize_robots
from aeo.structured_data import JsonLdScan, JsonLdScanner

logger = logging.getLogger(__name__)

T = TypeVar("T")

HTML_PARSER = "lxml"

# A sentence runs up to terminal punctuation followed by whitespace, or to
# the end of the text
_SENTENCE_RE = re.compile(r"\S.*?(?:[.!?]+(?=\s|$)|$)", re.DOTALL)

_NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]


def clean_text(text: str) -> str:
    """Normalize line endings and whitespace, dropping empty lines."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t\f\v]+", " ", text)
    lines = (line.strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


def split_sentences(text: str) -> List[str]:
    """Split text into sentences on terminal punctuation."""
    return [s.strip() for s in _SENTENCE_RE.findall(text) if s.strip()]


def bound_text(text: str, max_words: int) -> str:
    """Keep whole sentences while the running word count fits max_words.

    Never cuts a sentence; stops at the first sentence that would overflow.
    """
    kept = []
    words = 0
    for sentence in split_sentences(text):
        count = len(sentence.split())
        if words + count > max_words:
            break
        kept.append(sentence)
        words += count
    return " ".join(kept)


def normalize_host(host: str) -> str:
    """Lowercase a hostname and strip a leading www."""
    host = (host or "").lower()
    return host[4:] if host.startswith("www.") else host


def _element_text(element) -> str:
    return " ".join(element.get_text(" ", strip=True).split())


def _word_count(text: str) -> int:
    return len(text.split())


class FeatureExtractor:
    """Extract audit features from a single page."""

    def __init__(
        self,
        max_words: int = DEFAULT_MAX_WORDS,
        schema_cap: int = DEFAULT_SCHEMA_CAP,
    ):
        """Initialize the extractor.

        Args:
            max_words: Word budget for the bounded body text
            schema_cap: Character cap per JSON-LD display snippet
        """
        self.max_words = max_words
        self.schema_cap = schema_cap
        self.jsonld_scanner = JsonLdScanner(schema_cap=schema_cap)

    def extract(
        self,
        html: str,
        url: str,
        robots_txt: str = "",
        now: Optional[datetime] = None,
    ) -> FeatureDocument:
        """
        Build the FeatureDocument for a page.

        Args:
            html: Raw page HTML (may be malformed or partial)
            url: Absolute page URL
            robots_txt: Raw robots.txt content
            now: Reference time for freshness (defaults to current UTC time)

        Returns:
            FeatureDocument; identical inputs always give identical output
        """
        html = html or ""
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        # Pass 1: the full document
        full_soup = BeautifulSoup(html, HTML_PARSER)

        head = self._guard("head", lambda: self._extract_head(full_soup), "")
        scan = self._guard("json-ld", lambda: self.jsonld_scanner.scan(full_soup), JsonLdScan())
        headings = self._guard("headings", lambda: self._extract_headings(full_soup), "")
        outbound, wiki_links = self._guard(
            "links", lambda: self._link_stats(full_soup, url), (0, 0)
        )
        media = self._guard("media", lambda: self._extract_media(full_soup), MediaMetrics())
        author_present = self._guard(
            "author", lambda: self._has_author(full_soup), False
        ) or scan.author_present
        freshness = self._guard(
            "freshness", lambda: self._extract_freshness(full_soup, now), FreshnessMetrics()
        )
        answer = self._guard(
            "answer-upfront", lambda: self._extract_answer_upfront(full_soup), AnswerUpfrontMetrics()
        )
        first_para_words = self._guard(
            "first paragraph", lambda: self._first_paragraph_words(full_soup), 0
        )
        long_headings = self._guard(
            "long headings", lambda: self._count_long_headings(full_soup), 0
        )
        lang_meta = self._guard(
            "lang meta", lambda: self._extract_lang_meta(full_soup), LangMetaMetrics()
        )

        # Pass 2: the main content only, in its own tree
        text = self._guard("body text", lambda: self._extract_text(html, url), "")
        avg_sentence_len = self._average_sentence_length(text)

        crawler_access = summarize_robots(robots_txt or "")

        metrics = ExtractionMetrics(
            structured_data=StructuredDataMetrics(
                json_ld_blocks=scan.block_count,
                types=list(scan.types),
            ),
            answer_upfront=answer,
            freshness_meta=freshness,
            e_e_a_t_signals=EEATMetrics(
                author_present=bool(author_present),
                outbound_citations=outbound,
                wiki_links=wiki_links,
                https=url.startswith("https://"),
            ),
            snippet_conciseness=SnippetConcisenessMetrics(
                first_para_words=first_para_words,
                avg_sentence_len=avg_sentence_len,
                long_headings=long_headings,
            ),
            speakable_ready=SpeakableMetrics(speakable_blocks=scan.speakable_blocks),
            media_alt_caption=media,
            hreflang_lang_meta=lang_meta,
        )

        logger.debug(
            f"Extracted {url}: {scan.block_count} JSON-LD blocks, "
            f"{_word_count(text)} words, {media.images_total} images"
        )

        return FeatureDocument(
            head=head,
            schema="\n".join(scan.snippets),
            headings=headings,
            text=text,
            metrics=metrics,
            crawler_access=crawler_access,
        )

    def _guard(self, name: str, func: Callable[[], T], default: T) -> T:
        """Run one sub-extraction, degrading to a default on failure."""
        try:
            return func()
        except Exception as e:
            logger.warning(f"{name} extraction failed, using default: {e}")
            return default

    # ------------------------------------------------------------------
    # Whole-document signals
    # ------------------------------------------------------------------

    def _extract_head(self, soup: BeautifulSoup) -> str:
        """Concatenate the fixed list of head-level signals."""
        values = []
        for selector in HEAD_SELECTORS:
            element = soup.select_one(selector)
            if element is None:
                continue
            if element.name == "meta":
                value = element.get("content") or ""
            elif element.name == "link":
                value = element.get("href") or ""
            else:
                value = element.get_text(strip=True)
            value = value.strip()
            if value:
                values.append(value)
        return "\n".join(values)

    def _extract_headings(self, soup: BeautifulSoup) -> str:
        texts = (_element_text(h) for h in soup.find_all(["h1", "h2", "h3"]))
        return "\n".join(t for t in texts if t)

    def _count_long_headings(self, soup: BeautifulSoup) -> int:
        return sum(
            1
            for h in soup.find_all(["h1", "h2", "h3"])
            if _word_count(h.get_text(" ")) > LONG_HEADING_WORDS
        )

    def _resolve_link(self, href: str, page_url: str) -> Optional[Tuple[str, str]]:
        """Resolve an href against the page URL.

        Returns:
            (absolute_url, normalized_host), or None for empty, non-http
            or malformed links
        """
        href = (href or "").strip()
        if not href:
            return None
        try:
            absolute = urljoin(page_url, href)
            parsed = urlparse(absolute)
            host = parsed.hostname
        except ValueError as e:
            logger.debug(f"Skipping malformed link {href!r}: {e}")
            return None
        if parsed.scheme not in ("http", "https") or not host:
            return None
        return absolute, normalize_host(host)

    def _link_stats(self, soup: BeautifulSoup, page_url: str) -> Tuple[int, int]:
        """Count outbound and wiki-family links.

        Returns:
            Tuple of (outbound_count, wiki_family_count)
        """
        try:
            page_host = normalize_host(urlparse(page_url).hostname or "")
        except ValueError:
            page_host = ""

        outbound = 0
        wiki_links = 0
        for anchor in soup.find_all("a", href=True):
            resolved = self._resolve_link(anchor.get("href"), page_url)
            if resolved is None:
                continue
            _, host = resolved
            if host != page_host:
                outbound += 1
            if host.endswith(WIKI_FAMILY_HOSTS):
                wiki_links += 1
        return outbound, wiki_links

    def _extract_media(self, soup: BeautifulSoup) -> MediaMetrics:
        """Check image alt text and video captions."""
        images = soup.select(IMAGE_SELECTOR)
        bad_alts = []
        for img in images:
            alt = (img.get("alt") or "").strip()
            if len(alt.split()) < MIN_GOOD_ALT_WORDS:
                bad_alts.append(alt)

        videos_missing = sum(
            1
            for video in soup.find_all("video")
            if video.select_one("track[kind='captions']") is None
        )

        return MediaMetrics(
            images_total=len(images),
            images_missing_good_alt=len(bad_alts),
            sample_bad_alts=bad_alts[:MAX_BAD_ALT_SAMPLES],
            videos_missing_captions=videos_missing,
        )

    def _has_author(self, soup: BeautifulSoup) -> bool:
        """Check for author meta tags or a visible byline."""
        for meta in soup.select(AUTHOR_META_SELECTOR):
            if (meta.get("content") or "").strip():
                return True
        for element in soup.select(BYLINE_SELECTOR):
            if element.name != "meta" and element.get_text(strip=True):
                return True
        return False

    def _meta_property(self, soup: BeautifulSoup, prop: str) -> Optional[str]:
        element = soup.find("meta", attrs={"property": prop})
        if element is None:
            return None
        return (element.get("content") or "").strip() or None

    def _parse_timestamp(self, value: str) -> Optional[datetime]:
        text = value.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Unparsable timestamp: {value!r}")
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _extract_freshness(self, soup: BeautifulSoup, now: datetime) -> FreshnessMetrics:
        published = self._meta_property(soup, "article:published_time")
        modified = self._meta_property(soup, "article:modified_time")

        days_since = None
        if modified:
            modified_at = self._parse_timestamp(modified)
            if modified_at is not None:
                days_since = round((now - modified_at).total_seconds() / SECONDS_PER_DAY)

        return FreshnessMetrics(
            published=published,
            modified=modified,
            days_since_modified=days_since,
        )

    def _extract_answer_upfront(self, soup: BeautifulSoup) -> AnswerUpfrontMetrics:
        """Find the page's up-front answer; the first matching tier wins."""
        for selector in SUMMARY_SELECTORS:
            for element in soup.select(selector):
                text = _element_text(element)
                if text:
                    return AnswerUpfrontMetrics(_word_count(text), text, selector)

        tiers = [
            ("article p, article li, main p, main li", "article/main"),
            ("p, li", "document"),
        ]
        for selector, source in tiers:
            for element in soup.select(selector):
                text = _element_text(element)
                if text:
                    return AnswerUpfrontMetrics(_word_count(text), text, source)

        return AnswerUpfrontMetrics()

    def _first_paragraph_words(self, soup: BeautifulSoup) -> int:
        for element in soup.select("p, li"):
            text = _element_text(element)
            if text:
                return _word_count(text)
        return 0

    def _extract_lang_meta(self, soup: BeautifulSoup) -> LangMetaMetrics:
        html_tag = soup.find("html")
        lang = (html_tag.get("lang") or "").strip() if html_tag else ""
        return LangMetaMetrics(
            canonical_tags=len(soup.select("link[rel~='canonical']")),
            hreflang_tags=len(soup.select("link[rel~='alternate'][hreflang]")),
            html_lang=lang or None,
        )

    # ------------------------------------------------------------------
    # Main-content signals
    # ------------------------------------------------------------------

    def _isolate_main_content(self, html: str) -> Optional[str]:
        """Run readability over the page, returning the article HTML."""
        if not html.strip():
            return None
        try:
            summary = Document(html).summary(html_partial=True)
        except Exception as e:
            logger.debug(f"Main content isolation failed, using full body: {e}")
            return None
        if not summary or not BeautifulSoup(summary, HTML_PARSER).get_text(strip=True):
            return None
        return summary

    def _rewrite_links(self, soup: BeautifulSoup, page_url: str) -> None:
        """Replace each anchor with 'text (absolute-url)' so text keeps targets."""
        for anchor in soup.find_all("a", href=True):
            resolved = self._resolve_link(anchor.get("href"), page_url)
            if resolved is None:
                continue
            absolute, _ = resolved
            text = _element_text(anchor)
            anchor.replace_with(f"{text} ({absolute})" if text else f"({absolute})")

    def _extract_text(self, html: str, page_url: str) -> str:
        """Extract the word-bounded, cleaned main-content text."""
        main_html = self._isolate_main_content(html)
        if main_html is not None:
            content_soup = BeautifulSoup(main_html, HTML_PARSER)
            root = content_soup
        else:
            content_soup = BeautifulSoup(html, HTML_PARSER)
            root = content_soup.body or content_soup

        for tag in root.find_all(_NON_CONTENT_TAGS):
            tag.decompose()

        self._rewrite_links(root, page_url)

        raw_text = root.get_text(" ").strip()
        return clean_text(bound_text(raw_text, self.max_words))

    def _average_sentence_length(self, text: str) -> int:
        lengths = [_word_count(s) for s in split_sentences(text)]
        lengths = [n for n in lengths if n]
        if not lengths:
            return 0
        return round(sum(lengths) / len(lengths))


def extract(
    html: str,
    url: str,
    robots_txt: str = "",
    max_words: int = DEFAULT_MAX_WORDS,
    schema_cap: int = DEFAULT_SCHEMA_CAP,
    now: Optional[datetime] = None,
) -> FeatureDocument:
    """Extract a FeatureDocument from a page.

    Args:
        html: Raw page HTML
        url: Absolute page URL
        robots_txt: Raw robots.txt content
        max_words: Word budget for the body text
        schema_cap: Character cap per JSON-LD display snippet
        now: Reference time for freshness

    Returns:
        FeatureDocument
    """
    extractor = FeatureExtractor(max_words=max_words, schema_cap=schema_cap)
    return extractor.extract(html, url, robots_txt, now=now)
