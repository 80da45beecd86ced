"""Collapse raw calls into one record per (method, url) endpoint."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from models.calls import highest_confidence
from models.endpoints import CallSite, NormalizedEndpoint, NormalizedResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from models.calls import RawCall


def _site_order(call: RawCall) -> tuple[str, int, int, str]:
    return (call.file, call.line, call.column, call.source)


def normalize_results(calls: Sequence[RawCall]) -> NormalizedResult:
    """Group calls by uppercased method and exact URL.

    Call sites keep input order. Endpoint confidence is the highest of its
    call sites. The endpoint's ``source`` comes from its earliest call site
    by (file, line, column) so it does not depend on input order. Endpoints
    are sorted by method, then URL.
    """
    grouped: dict[tuple[str, str], list[RawCall]] = {}
    for call in calls:
        grouped.setdefault(call.endpoint_key(), []).append(call)

    endpoints: list[NormalizedEndpoint] = []
    for (method, url), members in grouped.items():
        confidence = members[0].confidence
        for member in members[1:]:
            confidence = highest_confidence(confidence, member.confidence)
        endpoints.append(
            NormalizedEndpoint(
                method=method,
                url=url,
                source=min(members, key=_site_order).source,
                call_sites=[
                    CallSite(
                        file=member.file,
                        line=member.line,
                        column=member.column,
                        confidence=member.confidence,
                    )
                    for member in members
                ],
                confidence=confidence,
                call_count=len(members),
            )
        )

    endpoints.sort(key=lambda endpoint: (endpoint.method, endpoint.url))

    return NormalizedResult(
        endpoints=endpoints,
        total_calls=len(calls),
        unique_endpoints=len(endpoints),
        by_method=dict(Counter(e.method for e in endpoints)),
        by_source=dict(Counter(e.source for e in endpoints)),
        by_confidence=dict(Counter(e.confidence for e in endpoints)),
    )


__all__ = ["normalize_results"]
