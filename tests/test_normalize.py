from __future__ import annotations

from models.calls import RawCall
from output.normalize import normalize_results


def _call(
    method: str,
    url: str,
    *,
    file: str = "src/a.ts",
    line: int = 1,
    column: int = 1,
    source: str = "fetch",
    confidence: str = "high",
) -> RawCall:
    return RawCall(
        method=method,
        url=url,
        line=line,
        column=column,
        file=file,
        source=source,  # type: ignore[arg-type]
        confidence=confidence,  # type: ignore[arg-type]
    )


def test_empty_input_gives_empty_result() -> None:
    result = normalize_results([])

    assert result.endpoints == []
    assert result.total_calls == 0
    assert result.unique_endpoints == 0
    assert result.by_method == {}


def test_calls_group_by_uppercased_method_and_exact_url() -> None:
    calls = [
        _call("get", "/api/users", line=1),
        _call("GET", "/api/users", line=2, confidence="low"),
        _call("GET", "/api/users/", line=3),
        _call("post", "/api/users", line=4, source="axios", confidence="medium"),
    ]

    result = normalize_results(calls)

    assert [(e.method, e.url, e.call_count) for e in result.endpoints] == [
        ("GET", "/api/users", 2),
        ("GET", "/api/users/", 1),
        ("POST", "/api/users", 1),
    ]
    assert result.total_calls == 4
    assert result.unique_endpoints == 3
    assert result.by_method == {"GET": 2, "POST": 1}
    assert result.by_source == {"fetch": 2, "axios": 1}
    assert result.by_confidence == {"high": 2, "medium": 1}


def test_endpoint_confidence_is_highest_of_its_sites() -> None:
    calls = [
        _call("GET", "/api/a", line=1, confidence="low"),
        _call("GET", "/api/a", line=2, confidence="medium"),
        _call("GET", "/api/a", line=3, confidence="low"),
    ]

    [endpoint] = normalize_results(calls).endpoints

    assert endpoint.confidence == "medium"
    assert [site.line for site in endpoint.call_sites] == [1, 2, 3]
    assert [site.confidence for site in endpoint.call_sites] == ["low", "medium", "low"]


def test_result_does_not_depend_on_input_order() -> None:
    calls = [
        _call("GET", "/api/b", file="src/b.ts", source="axios"),
        _call("GET", "/api/b", file="src/a.ts", source="fetch"),
        _call("DELETE", "/api/a", file="src/c.ts"),
    ]

    forward = normalize_results(calls)
    backward = normalize_results(list(reversed(calls)))

    assert [(e.method, e.url, e.source, e.confidence) for e in forward.endpoints] == [
        (e.method, e.url, e.source, e.confidence) for e in backward.endpoints
    ]
    assert forward.endpoints[1].source == "fetch"
    assert forward.by_source == backward.by_source


def test_adding_a_call_never_removes_an_endpoint() -> None:
    calls = [_call("GET", "/api/a"), _call("PUT", "/api/b")]
    before = {(e.method, e.url) for e in normalize_results(calls).endpoints}

    after = {
        (e.method, e.url)
        for e in normalize_results([*calls, _call("GET", "/api/c")]).endpoints
    }

    assert before < after
