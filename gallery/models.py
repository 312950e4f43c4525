"""Pydantic models for Wikimedia Commons image-info responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError


class ExtMetadataField(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Any = None


class ImageInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    width: int | None = None
    height: int | None = None
    mime: str | None = None
    descriptionurl: str | None = None
    extmetadata: dict[str, ExtMetadataField] = {}

    def meta(self, key: str) -> str | None:
        field = self.extmetadata.get(key)
        if field is None or field.value in (None, ""):
            return None
        return str(field.value)


class CommonsPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    missing: bool = False
    imageinfo: list[ImageInfo] = []


class CommonsQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    pages: list[CommonsPage] = []


class CommonsResponse(BaseModel):
    """action=query&prop=imageinfo&formatversion=2"""

    model_config = ConfigDict(extra="ignore")

    query: CommonsQuery | None = None

    @classmethod
    def decode(cls, data: Any) -> "CommonsResponse | None":
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None

    def first_image(self) -> ImageInfo | None:
        if not self.query:
            return None
        for page in self.query.pages:
            if not page.missing and page.imageinfo and page.imageinfo[0].url:
                return page.imageinfo[0]
        return None
