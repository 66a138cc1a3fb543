"""RSS feed parsing and item discovery."""

from __future__ import annotations

import logging

# Bandit: parsing handled via defusedxml safe APIs
import xml.etree.ElementTree as ET  # nosec B405
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from defusedxml.ElementTree import fromstring as safe_fromstring, ParseError as DefusedXMLParseError

from . import config, downloader, models

logger = logging.getLogger(__name__)

ATOM_NS = "{http://www.w3.org/2005/Atom}"


def _find_local(element: ET.Element, name: str) -> Optional[ET.Element]:
    found = element.find(name)
    if found is None:
        found = next(
            (e for e in element.iter() if isinstance(e.tag, str) and e.tag.endswith(name)),
            None,
        )
    return found


def parse_rss_items(xml_bytes: bytes) -> Tuple[str, List[ET.Element]]:
    """Parse RSS XML and return the channel title and the item elements.

    Raises:
        ValueError: If the XML cannot be parsed
    """
    try:
        root = safe_fromstring(xml_bytes)
    except DefusedXMLParseError as exc:
        raise ValueError(f"Failed to parse RSS XML: {exc}") from exc

    channel = _find_local(root, "channel")
    if channel is None:
        items = [e for e in root.iter() if isinstance(e.tag, str) and e.tag.endswith("item")]
        return "", items

    title = ""
    title_el = channel.find("title")
    if title_el is not None and title_el.text:
        title = title_el.text.strip()

    items = list(channel.findall("item"))
    if not items:
        items = [e for e in channel if isinstance(e.tag, str) and e.tag.endswith("item")]
    return title, items


def find_enclosure_url(item: ET.Element, base_url: str) -> Optional[str]:
    """Return the enclosure media URL of an RSS item, resolved against ``base_url``."""
    for el in item.iter():
        if isinstance(el.tag, str) and el.tag.lower().endswith("enclosure"):
            url_attr = el.attrib.get("url")
            if url_attr:
                return urljoin(base_url, url_attr.strip())
    return None


def extract_episode_title(item: ET.Element, idx: int) -> str:
    title_el = _find_local(item, "title")
    if title_el is not None and title_el.text and title_el.text.strip():
        return title_el.text.strip()
    return f"episode_{idx}"


def _parse_iso(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def extract_episode_published_date(item: ET.Element) -> Optional[datetime]:
    """Extract the published date from an RSS item (pubDate, then Atom dates)."""
    pub_date_elem = item.find("pubDate")
    if pub_date_elem is not None and pub_date_elem.text:
        try:
            return parsedate_to_datetime(pub_date_elem.text.strip())
        except (TypeError, ValueError):
            logger.debug("Unparseable pubDate %r", pub_date_elem.text)

    for tag in ("published", "updated"):
        elem = item.find(f"{ATOM_NS}{tag}")
        if elem is not None and elem.text:
            parsed = _parse_iso(elem.text)
            if parsed is not None:
                return parsed
    return None


def build_feed(xml_bytes: bytes, feed_url: str) -> models.Feed:
    """Build a Feed from raw XML; items without an enclosure are skipped."""
    title, elements = parse_rss_items(xml_bytes)
    items: List[models.SourceItem] = []
    for idx, element in enumerate(elements, start=1):
        ep_title = extract_episode_title(element, idx)
        media_url = find_enclosure_url(element, feed_url)
        if media_url is None:
            logger.debug("Skipping item without enclosure: %s", ep_title)
            continue
        items.append(
            models.SourceItem(
                title=ep_title,
                media_url=media_url,
                publish_date=extract_episode_published_date(element),
                source_url=feed_url,
            )
        )
    return models.Feed(title=title or feed_url, url=feed_url, items=items)


def fetch_feed(feed_url: str, cfg: config.Config) -> models.Feed:
    """Fetch and parse the feed at ``feed_url``.

    Raises:
        DownloadError: If the feed cannot be fetched
        ValueError: If the feed cannot be parsed
    """
    resp = downloader.fetch_url(feed_url, cfg.user_agent, cfg.timeout, stream=False)
    try:
        rss_bytes = resp.content
        feed_base_url = resp.url or feed_url
    finally:
        resp.close()
    feed = build_feed(rss_bytes, feed_base_url)
    feed.url = feed_url
    logger.debug("Parsed feed %r with %d items", feed.title, len(feed.items))
    return feed


def _sort_key(item: models.SourceItem) -> datetime:
    if item.publish_date is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if item.publish_date.tzinfo is None:
        return item.publish_date.replace(tzinfo=timezone.utc)
    return item.publish_date


def select_items(
    items: Sequence[models.SourceItem], limit: Optional[int] = None
) -> List[models.SourceItem]:
    """Return ``items`` newest first, truncated to ``limit`` when given.

    Items without a date sort last, keeping their feed order.
    """
    ordered = sorted(items, key=_sort_key, reverse=True)
    if limit is not None:
        ordered = ordered[:limit]
    return ordered
