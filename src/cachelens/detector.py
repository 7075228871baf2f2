"""Heuristic cache status detection.

Infers whether a response was served by a cache layer outside our control.
The verdict is a diagnostic signal, not a guarantee.

Rules run in a fixed order. The status comes from the last rule that set
one, confidence is the running maximum, and a ``no-store`` request always
ends as a confident MISS.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass

import httpx

from cachelens.types import (
    CacheAnalysis,
    CacheMetadata,
    CacheRequestOptions,
    CacheStatus,
    Timing,
)

PRIMARY_CACHE_HEADER = "x-nextjs-cache"
SECONDARY_CACHE_HEADER = "x-vercel-cache"

VERY_FAST_MS = 5
FAST_MS = 20

_MAX_AGE_PATTERN = re.compile(r"max-age=(\d+)")
_DIGITS = re.compile(r"[0-9]+")
_SWR_DIRECTIVE = "stale-while-revalidate"

HeadersLike = httpx.Response | httpx.Headers | Mapping[str, str]


@dataclass(frozen=True, slots=True)
class _Signals:
    """Parsed inputs shared by every rule."""

    headers: httpx.Headers
    options: CacheRequestOptions
    duration: float
    age: int | None
    max_age: int | None


@dataclass(frozen=True, slots=True)
class RuleResult:
    status: CacheStatus | None = None
    confidence: float | None = None
    indicator: str | None = None


Rule = Callable[[_Signals, CacheStatus], "RuleResult | None"]


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    value = value.strip()
    if not _DIGITS.fullmatch(value):
        return None
    return int(value)


def _format_ms(duration: float) -> str:
    return f"{duration:g}ms"


def _provider_header(signals: _Signals, status: CacheStatus) -> RuleResult | None:
    for header, confidence in (
        (PRIMARY_CACHE_HEADER, 0.95),
        (SECONDARY_CACHE_HEADER, 0.9),
    ):
        value = signals.headers.get(header)
        if value:
            parsed = CacheStatus.parse(value)
            indicator = f"{header}: {value}"
            if parsed is None:
                # Unknown vocabulary: keep it as evidence only
                return RuleResult(indicator=indicator)
            return RuleResult(parsed, confidence, indicator)
    return None


def _timing(signals: _Signals, status: CacheStatus) -> RuleResult | None:
    duration = signals.duration
    if duration < VERY_FAST_MS:
        return RuleResult(
            CacheStatus.HIT, 0.8, f"very fast response ({_format_ms(duration)})"
        )
    if duration < FAST_MS and signals.options.revalidate:
        return RuleResult(
            CacheStatus.HIT, 0.7, f"fast cached response ({_format_ms(duration)})"
        )
    return None


def _age(signals: _Signals, status: CacheStatus) -> RuleResult | None:
    if signals.age is not None and signals.age > 0:
        return RuleResult(CacheStatus.HIT, 0.8, f"age header: {signals.age}s")
    return None


def _cache_control(signals: _Signals, status: CacheStatus) -> RuleResult | None:
    cache_control = signals.headers.get("cache-control")
    if cache_control and signals.max_age is not None and _SWR_DIRECTIVE in cache_control:
        return RuleResult(indicator=f"cache-control: {cache_control}")
    return None


def _staleness(signals: _Signals, status: CacheStatus) -> RuleResult | None:
    if status is not CacheStatus.HIT:
        return None
    if signals.age is None or signals.max_age is None:
        return None
    if signals.age > signals.max_age:
        return RuleResult(
            CacheStatus.STALE,
            indicator=f"stale: age({signals.age}) > max-age({signals.max_age})",
        )
    return None


RULES: tuple[Rule, ...] = (
    _provider_header,
    _timing,
    _age,
    _cache_control,
    _staleness,
)


def _as_headers(source: HeadersLike) -> httpx.Headers:
    if isinstance(source, httpx.Response):
        return source.headers
    if isinstance(source, httpx.Headers):
        return source
    return httpx.Headers(dict(source))


def analyze_cache_status(
    headers: HeadersLike,
    options: CacheRequestOptions,
    timing: Timing,
) -> CacheAnalysis:
    """Classify a response as HIT, MISS, STALE or REVALIDATED.

    Args:
        headers: Response headers, or the response itself
        options: The request's tags, revalidate window and cache directive
        timing: Request start and end in milliseconds

    Returns:
        A fresh CacheAnalysis; absent or malformed headers lower confidence
        but never raise.
    """
    response_headers = _as_headers(headers)
    cache_control = response_headers.get("cache-control")
    max_age_match = _MAX_AGE_PATTERN.search(cache_control) if cache_control else None

    signals = _Signals(
        headers=response_headers,
        options=options,
        duration=timing.duration,
        age=_parse_int(response_headers.get("age")),
        max_age=int(max_age_match.group(1)) if max_age_match else None,
    )

    status = CacheStatus.MISS
    confidence = 0.5
    indicators: list[str] = []

    for rule in RULES:
        result = rule(signals, status)
        if result is None:
            continue
        if result.status is not None:
            status = result.status
        if result.confidence is not None:
            confidence = max(confidence, result.confidence)
        if result.indicator is not None:
            indicators.append(result.indicator)

    if options.cache == "no-store":
        status = CacheStatus.MISS
        confidence = 0.95
        indicators.append("cache: no-store")

    if not indicators:
        indicators.append("no indicators")

    return CacheAnalysis(
        status=status,
        confidence=confidence,
        indicators=indicators,
        metadata=CacheMetadata(
            tags=list(options.tags),
            duration=signals.duration,
            age=signals.age,
            revalidate=options.revalidate,
            strategy=options.cache,
        ),
    )
