"""Pydantic models for MusicBrainz WS/2 JSON responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class MBModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MBArtist(MBModel):
    id: str | None = None
    name: str | None = None
    sort_name: str | None = Field(None, alias="sort-name")


class MBArtistCredit(MBModel):
    name: str | None = None
    joinphrase: str | None = None
    artist: MBArtist | None = None


class MBLabel(MBModel):
    id: str | None = None
    name: str | None = None


class MBLabelInfo(MBModel):
    catalog_number: str | None = Field(None, alias="catalog-number")
    label: MBLabel | None = None


class MBTag(MBModel):
    name: str | None = None
    count: int | None = None


class MBReleaseGroup(MBModel):
    id: str | None = None
    title: str | None = None
    primary_type: str | None = Field(None, alias="primary-type")


class MBUrl(MBModel):
    resource: str | None = None


class MBRelation(MBModel):
    type: str | None = None
    target_type: str | None = Field(None, alias="target-type")
    url: MBUrl | None = None


class MBRelease(MBModel):
    """A release as returned by search or by /release/{id} with includes."""

    id: str
    title: str | None = None
    status: str | None = None
    date: str | None = None
    country: str | None = None
    barcode: str | None = None
    artist_credit: list[MBArtistCredit] = Field(default_factory=list, alias="artist-credit")
    label_info: list[MBLabelInfo] = Field(default_factory=list, alias="label-info")
    release_group: MBReleaseGroup | None = Field(None, alias="release-group")
    tags: list[MBTag] = []
    relations: list[MBRelation] = []

    @property
    def primary_artist(self) -> MBArtist | None:
        if not self.artist_credit:
            return None
        return self.artist_credit[0].artist

    def artist_name(self) -> str | None:
        """Credited artist string, joined the way MusicBrainz displays it."""
        names = [credit for credit in self.artist_credit if credit.name]
        if not names:
            return None
        parts: list[str] = []
        for index, credit in enumerate(names):
            parts.append(credit.name or "")
            if index < len(names) - 1:
                parts.append(credit.joinphrase or " & ")
        return "".join(parts).strip() or None

    def url_resources(self) -> list[str]:
        """Outbound URL relation targets, in relation order."""
        return [rel.url.resource for rel in self.relations if rel.url and rel.url.resource]

    @classmethod
    def decode(cls, data: Any) -> "MBRelease | None":
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None


class MBReleaseSearch(MBModel):
    releases: list[MBRelease] = []

    @classmethod
    def decode(cls, data: Any) -> "MBReleaseSearch | None":
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None


class MusicBrainzSummary(BaseModel):
    """Compact extract of the hydrated release kept in the output document."""

    release_id: str
    title: str | None = None
    status: str | None = None
    date: str | None = None
    country: str | None = None
    barcode: str | None = None
    artist: str | None = None
    release_group_id: str | None = None
    release_group_title: str | None = None
    primary_type: str | None = None
    tags: list[str] = []
    urls: list[str] = []
    raw: dict[str, Any] | None = None
