"""Core types for cachelens."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

RevalidateFunction = Literal["revalidate_tag", "update_tag"]

# Tags to invalidate after a mutation, or "never" to skip revalidation entirely
RevalidateTags = list[str] | Literal["never"]

# Seconds, or False to disable time-based revalidation
Revalidate = int | Literal[False]


class CacheStatus(str, Enum):
    """Inferred cache outcome of a response."""

    HIT = "HIT"
    MISS = "MISS"
    STALE = "STALE"
    REVALIDATED = "REVALIDATED"

    @classmethod
    def parse(cls, value: str) -> "CacheStatus | None":
        """Normalize a provider header value to a status, or None if unknown."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class TagDefinition:
    """A named cache partition."""

    name: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class CacheRequestOptions:
    """Cache-relevant options of the request being classified."""

    tags: list[str] = field(default_factory=list)
    revalidate: Revalidate | None = None
    cache: str | None = None


@dataclass(frozen=True, slots=True)
class Timing:
    """Request timing boundaries in milliseconds."""

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class CacheMetadata:
    """Observed facts attached to a classification."""

    tags: list[str]
    duration: float
    age: int | None = None
    revalidate: Revalidate | None = None
    strategy: str | None = None  # The cache directive of the request


@dataclass(frozen=True, slots=True)
class CacheAnalysis:
    """Best-effort verdict on whether a response was served from cache."""

    status: CacheStatus
    confidence: float
    indicators: list[str]
    metadata: CacheMetadata


@dataclass(frozen=True, slots=True)
class ApiResponse:
    """Uniform response envelope returned by the HTTP verbs."""

    data: object
    message: str
    status: int

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
