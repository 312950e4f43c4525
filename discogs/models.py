"""Pydantic models for Discogs API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

PLACEHOLDER_IMAGE = "spacer.gif"


class DiscogsSearchHit(BaseModel):
    """A single result from /database/search."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    master_id: int | None = None
    title: str | None = None
    country: str | None = None
    year: str | None = None
    label: str | None = None
    genre: list[str] = []
    style: list[str] = []
    format: list[str] = []
    thumb: str | None = None

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, v: Any) -> str | None:
        if v in (None, "", 0):
            return None
        return str(v)

    @field_validator("label", mode="before")
    @classmethod
    def _first_label(cls, v: Any) -> str | None:
        # Search hits carry every label on the release; the first is the primary one
        if isinstance(v, list):
            return next((str(item) for item in v if item), None)
        return v or None

    @field_validator("genre", "style", "format", mode="before")
    @classmethod
    def _tag_list(cls, v: Any) -> list[str]:
        if not v:
            return []
        if isinstance(v, str):
            return [v]
        return [str(item) for item in v if item]

    @field_validator("thumb", mode="before")
    @classmethod
    def _drop_placeholder(cls, v: Any) -> str | None:
        if not v or PLACEHOLDER_IMAGE in str(v):
            return None
        return str(v)

    def split_title(self) -> tuple[str | None, str | None]:
        """Split 'Artist – Title' on the en-dash separator.

        Returns:
            (artist, title); artist is None when the separator is absent
        """
        if not self.title:
            return None, None
        parts = self.title.split(" – ")
        if len(parts) == 2:
            return parts[0].strip() or None, parts[1].strip() or None
        return None, self.title


class DiscogsSearchPage(BaseModel):
    """One page of /database/search results."""

    model_config = ConfigDict(extra="ignore")

    results: list[DiscogsSearchHit] = []

    @classmethod
    def decode(cls, data: Any) -> "DiscogsSearchPage | None":
        """Validate a raw payload, treating anything malformed as no data."""
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None
