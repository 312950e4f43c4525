"""Fetch outcome types shared by every provider resolver."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class FetchOutcome(StrEnum):
    OK = "ok"
    SOFT_FAILURE = "soft_failure"
    RATE_LIMITED = "rate_limited"


@dataclass(frozen=True)
class FetchResult:
    """What a single provider call yielded.

    ``data`` is only populated when ``outcome`` is OK. A rate-limited call has
    already been retried once and is handled by callers like any soft failure.
    """

    outcome: FetchOutcome
    status: int | None = None
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.OK


class HttpTraceEntry(BaseModel):
    """One outbound attempt, as recorded in the diagnostics log."""

    url: str
    status: int
