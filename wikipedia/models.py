"""Pydantic models for Wikipedia REST / action API payloads and extracted facts."""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError


class WikiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @classmethod
    def decode(cls, data: Any):
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None


class WikiImage(WikiModel):
    source: str | None = None
    width: int | None = None
    height: int | None = None


class PageSummary(WikiModel):
    """/api/rest_v1/page/summary/{title}"""

    title: str | None = None
    description: str | None = None
    extract: str | None = None
    thumbnail: WikiImage | None = None
    originalimage: WikiImage | None = None


class MediaSource(WikiModel):
    src: str | None = None
    scale: str | None = None

    @property
    def scale_factor(self) -> float:
        try:
            return float((self.scale or "1x").rstrip("x"))
        except ValueError:
            return 1.0


class MediaItem(WikiModel):
    title: str | None = None
    type: str | None = None
    caption: dict[str, Any] | None = None
    srcset: list[MediaSource] = []

    def largest_source(self) -> str | None:
        """URL of the highest-scale variant, made absolute."""
        sources = [s for s in self.srcset if s.src]
        if not sources:
            return None
        best = max(sources, key=lambda s: s.scale_factor)
        return "https:" + best.src if best.src.startswith("//") else best.src

    @property
    def caption_text(self) -> str | None:
        if not self.caption:
            return None
        text = self.caption.get("text")
        return text if isinstance(text, str) and text else None


class MediaList(WikiModel):
    """/api/rest_v1/page/media-list/{title}"""

    items: list[MediaItem] = []


class ParsedPage(WikiModel):
    """action=parse&formatversion=2 ``parse`` object."""

    title: str | None = None
    text: str | None = None

    @classmethod
    def from_response(cls, data: Any) -> "ParsedPage | None":
        if not isinstance(data, dict):
            return None
        return cls.decode(data.get("parse"))


class TrackEntry(BaseModel):
    number: int
    title: str


class ArticleFacts(BaseModel):
    """Heuristic facts pulled from article markup.

    A field stays None when its extractor found nothing, so "nothing found"
    is never confused with an empty list.
    """

    tracklist: list[TrackEntry] | None = None
    personnel: list[str] | None = None
    awards: list[str] | None = None
    certifications: list[str] | None = None
    landmarks: list[str] | None = None


class SummaryExtract(BaseModel):
    description: str | None = None
    extract: str | None = None
    thumbnail: str | None = None


class WikipediaDocument(ArticleFacts):
    """Everything the Wikipedia stage contributes to the output document."""

    title: str | None = None
    url: str | None = None
    lang: str | None = None
    summary: SummaryExtract | None = None
    infobox: dict[str, str] | None = None

    def apply_facts(self, facts: ArticleFacts) -> None:
        for name in ArticleFacts.model_fields:
            value = getattr(facts, name)
            if value:
                setattr(self, name, value)
