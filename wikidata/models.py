"""Pydantic models for Wikidata entity data and SPARQL results."""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

# Property IDs used by the resolver and the gallery builder
IMAGE = "P18"
PERFORMER = "P175"
PUBLICATION_DATE = "P577"
MB_ARTIST_ID = "P434"
MB_RELEASE_GROUP_ID = "P436"


class LangValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    language: str | None = None
    value: str | None = None


class SiteLink(BaseModel):
    model_config = ConfigDict(extra="ignore")

    site: str | None = None
    title: str | None = None
    url: str | None = None


class Claim(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mainsnak: dict[str, Any] = {}
    rank: str = "normal"

    @property
    def value(self) -> Any:
        datavalue = self.mainsnak.get("datavalue") or {}
        return datavalue.get("value") if isinstance(datavalue, dict) else None


class WikidataEntity(BaseModel):
    """An item with its labels, claims and site links."""

    model_config = ConfigDict(extra="ignore")

    id: str
    labels: dict[str, LangValue] = {}
    descriptions: dict[str, LangValue] = {}
    claims: dict[str, list[Claim]] = {}
    sitelinks: dict[str, SiteLink] = {}

    def label(self, lang: str) -> str | None:
        entry = self.labels.get(lang)
        return entry.value if entry else None

    def description(self, lang: str) -> str | None:
        entry = self.descriptions.get(lang)
        return entry.value if entry else None

    def claim_values(self, prop: str) -> list[Any]:
        """Values of a property, skipping deprecated statements and no-value snaks."""
        return [
            claim.value
            for claim in self.claims.get(prop, [])
            if claim.rank != "deprecated" and claim.value is not None
        ]

    def string_values(self, prop: str) -> list[str]:
        return [v for v in self.claim_values(prop) if isinstance(v, str) and v]

    def entity_ids(self, prop: str) -> list[str]:
        return [
            v["id"]
            for v in self.claim_values(prop)
            if isinstance(v, dict) and isinstance(v.get("id"), str)
        ]

    def first_year(self, prop: str) -> str | None:
        """Year of the first time-valued statement, e.g. '+1959-08-17T00:00:00Z' -> '1959'."""
        for v in self.claim_values(prop):
            if isinstance(v, dict) and isinstance(v.get("time"), str):
                year = v["time"].lstrip("+").split("-", 1)[0]
                if year.isdigit():
                    return year
        return None

    def sitelink_title(self, lang: str) -> str | None:
        link = self.sitelinks.get(f"{lang}wiki")
        return link.title if link and link.title else None

    @classmethod
    def from_entity_data(cls, data: Any, qid: str) -> "WikidataEntity | None":
        """Pick ``qid`` out of a Special:EntityData payload.

        Redirected items come back under their target ID, so a lone entity is
        accepted even when its key differs.
        """
        if not isinstance(data, dict):
            return None
        entities = data.get("entities")
        if not isinstance(entities, dict) or not entities:
            return None
        raw = entities.get(qid)
        if raw is None and len(entities) == 1:
            raw = next(iter(entities.values()))
        try:
            return cls.model_validate(raw)
        except ValidationError:
            return None


class EntitySummary(BaseModel):
    """Compact extract of a hydrated entity kept in the output document."""

    qid: str
    label: str | None = None
    description: str | None = None
    sitelink: str | None = None
    images: list[str] = []
    raw: dict[str, Any] | None = None


class WikidataSummary(BaseModel):
    album: EntitySummary | None = None
    artist: EntitySummary | None = None


def first_binding(data: Any, var: str) -> str | None:
    """Value of ``var`` in the first SPARQL JSON binding, if any."""
    if not isinstance(data, dict):
        return None
    results = data.get("results")
    if not isinstance(results, dict):
        return None
    bindings = results.get("bindings")
    if not isinstance(bindings, list) or not bindings or not isinstance(bindings[0], dict):
        return None
    cell = bindings[0].get(var) or {}
    value = cell.get("value") if isinstance(cell, dict) else None
    return value if isinstance(value, str) and value else None
