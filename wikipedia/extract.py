"""Heuristic fact extraction from rendered Wikipedia article HTML.

Extraction runs in two phases: the article is first segmented into
heading-delimited sections, then each extractor looks only at the sections
(or tables) it cares about. Nothing here touches the network, so extractors
can be exercised directly against saved markup.
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from core.exceptions import ContentExtractionError
from wikipedia.models import ArticleFacts, TrackEntry

logger = logging.getLogger(__name__)

HEADING_TAGS = ("h2", "h3", "h4", "h5", "h6")
TRACK_NUMBER = re.compile(r"^(\d+)\.?$")
QUOTES = "\"'“”‘’"

PERSONNEL_HEADINGS = re.compile(r"\b(personnel|credits)\b", re.IGNORECASE)
AWARDS_HEADINGS = re.compile(r"\b(awards|accolades)\b", re.IGNORECASE)
CERTIFICATION_HEADINGS = re.compile(r"\bcertifications?\b", re.IGNORECASE)

LANDMARK_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"grammy hall of fame",
        r"rock and roll hall of fame",
        r"(?:inducted|induction) into the [\w' ]+? hall of fame",
        r"national recording registry",
        r"library of congress",
        r"certified (?:\d+× ?)?(?:gold|platinum|diamond)",
        r"(?:multi-)?platinum certification",
        r"best[- ]selling (?:jazz |rock |debut )?album",
        r"most influential",
        r"landmark album",
        r"500 greatest albums of all time",
    )
]


def flatten(text: str) -> str:
    return " ".join(text.split())


def heading_level(tag: Tag) -> int | None:
    """Level of a heading element, or of the mw-heading wrapper holding one."""
    if tag.name in HEADING_TAGS:
        return int(tag.name[1])
    if tag.name == "div" and "mw-heading" in (tag.get("class") or []):
        inner = tag.find(HEADING_TAGS)
        if inner is not None:
            return int(inner.name[1])
    return None


@dataclass
class Section:
    """A heading and every sibling element up to the next heading at its level or above."""

    heading: str
    level: int
    nodes: list[Tag] = field(default_factory=list)

    def list_items(self) -> list[str]:
        items: list[str] = []
        for node in self.nodes:
            lis = [node] if node.name == "li" else node.find_all("li")
            for li in lis:
                text = flatten(li.get_text(" ", strip=True))
                if text and text not in items:
                    items.append(text)
        return items


def segment_sections(soup: BeautifulSoup) -> list[Section]:
    """Split an article into heading-delimited sections.

    Subsections are included in their parent section as well as appearing on
    their own.
    """
    sections = []
    for heading in soup.find_all(HEADING_TAGS):
        anchor = heading
        parent = heading.parent
        if isinstance(parent, Tag) and "mw-heading" in (parent.get("class") or []):
            anchor = parent
        level = int(heading.name[1])
        section = Section(heading=flatten(heading.get_text(" ", strip=True)), level=level)
        for sibling in anchor.find_next_siblings():
            sibling_level = heading_level(sibling)
            if sibling_level is not None and sibling_level <= level:
                break
            section.nodes.append(sibling)
        sections.append(section)
    return sections


def _items_under(sections: Iterable[Section], pattern: re.Pattern) -> list[str] | None:
    items: list[str] = []
    for section in sections:
        if pattern.search(section.heading):
            items.extend(i for i in section.list_items() if i not in items)
    return items or None


def is_tracklist_table(table: Tag) -> bool:
    classes = " ".join(table.get("class") or []).lower()
    if "tracklist" in classes or "track-listing" in classes:
        return True
    caption = table.find("caption")
    return caption is not None and "track" in caption.get_text(" ", strip=True).lower()


def extract_tracklist(sections: list[Section], soup: BeautifulSoup) -> list[TrackEntry] | None:
    """Numbered rows of every table that looks like a track listing, in row order."""
    tracks: list[TrackEntry] = []
    for table in soup.find_all("table"):
        if not is_tracklist_table(table):
            continue
        for row in table.find_all("tr"):
            cells = row.find_all(["th", "td"], recursive=False)
            if len(cells) < 2:
                continue
            number = TRACK_NUMBER.match(cells[0].get_text(strip=True))
            if not number:
                continue
            title = flatten(cells[1].get_text(" ", strip=True)).strip(QUOTES).strip()
            if title:
                tracks.append(TrackEntry(number=int(number.group(1)), title=title))
    return tracks or None


def extract_personnel(sections: list[Section], soup: BeautifulSoup) -> list[str] | None:
    return _items_under(sections, PERSONNEL_HEADINGS)


def extract_awards(sections: list[Section], soup: BeautifulSoup) -> list[str] | None:
    return _items_under(sections, AWARDS_HEADINGS)


def extract_certifications(sections: list[Section], soup: BeautifulSoup) -> list[str] | None:
    return _items_under(sections, CERTIFICATION_HEADINGS)


def extract_landmarks(sections: list[Section], soup: BeautifulSoup) -> list[str] | None:
    """Distinct recognition phrases anywhere in the article text."""
    text = flatten(soup.get_text(" "))
    found: list[str] = []
    seen: set[str] = set()
    for pattern in LANDMARK_PATTERNS:
        for match in pattern.finditer(text):
            phrase = flatten(match.group(0))
            if phrase.lower() not in seen:
                seen.add(phrase.lower())
                found.append(phrase)
    return found or None


Extractor = Callable[[list[Section], BeautifulSoup], list | None]

EXTRACTORS: dict[str, Extractor] = {
    "tracklist": extract_tracklist,
    "personnel": extract_personnel,
    "awards": extract_awards,
    "certifications": extract_certifications,
    "landmarks": extract_landmarks,
}


def make_soup(html: str) -> BeautifulSoup:
    """Parse article markup with edit links and citation markers removed.

    Raises:
        ContentExtractionError: If ``html`` is not markup
    """
    if not isinstance(html, str) or "<" not in html:
        raise ContentExtractionError(
            "Article content is not HTML markup", details={"type": type(html).__name__}
        )
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.select("span.mw-editsection, sup.reference, style, script"):
        tag.decompose()
    return soup


def parse_article(html: str) -> ArticleFacts:
    """Run every extractor over one article.

    Fields with no findings stay None.
    """
    soup = make_soup(html)
    sections = segment_sections(soup)
    facts = ArticleFacts(**{name: fn(sections, soup) for name, fn in EXTRACTORS.items()})
    logger.debug(
        f"Extracted from {len(sections)} sections: "
        f"{[name for name in EXTRACTORS if getattr(facts, name)]}"
    )
    return facts


def parse_infobox(html: str) -> dict[str, str] | None:
    """Label/value rows of the first infobox table, or None without one."""
    soup = make_soup(html)
    table = soup.find("table", class_="infobox")
    if table is None:
        return None
    infobox: dict[str, str] = {}
    for row in table.find_all("tr"):
        label = row.find("th")
        value = row.find("td")
        if label is None or value is None:
            continue
        key = flatten(label.get_text(" ", strip=True))
        text = flatten(value.get_text(" ", strip=True))
        if key and text and key not in infobox:
            infobox[key] = text
    return infobox or None
