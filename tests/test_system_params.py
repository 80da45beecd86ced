from __future__ import annotations

from models.calls import RawCall
from output.system_params import code_snippet, extract_system_params


def _call(code: str | None) -> RawCall:
    return RawCall(
        method="GET",
        url="/api/x",
        line=1,
        column=1,
        file="src/a.ts",
        source="fetch",
        function_code=code,
    )


def test_dot_and_bracket_access_are_collected_and_sorted() -> None:
    calls = [
        _call(
            "export async function GET() {\n"
            "  const db = connect(process.env.DATABASE_URL);\n"
            "  const key = process.env['API_KEY'];\n"
            "  return Response.json({});\n"
            "}"
        ),
        _call(None),
        _call("const region = process.env [ \"AWS_REGION\" ];"),
    ]

    params = extract_system_params(calls)

    assert [p.name for p in params] == ["API_KEY", "AWS_REGION", "DATABASE_URL"]
    database = params[-1]
    assert database.code_snippet is not None
    assert "process.env.DATABASE_URL" in database.code_snippet
    assert "\n" not in database.code_snippet


def test_first_occurrence_supplies_the_snippet() -> None:
    calls = [
        _call("const a = process.env.TOKEN; // first"),
        _call("const b = process.env.TOKEN; // second"),
    ]

    [param] = extract_system_params(calls)

    assert param.name == "TOKEN"
    assert param.code_snippet is not None
    assert "first" in param.code_snippet


def test_no_env_access_gives_no_params() -> None:
    assert extract_system_params([_call("return fetch('/api/x');")]) == []


def test_code_snippet_is_bounded() -> None:
    code = "x" * 100 + "process.env.LONG" + "y" * 500

    snippet = code_snippet(code, 100)

    assert snippet.startswith("x" * 40 + "process.env.LONG")
    assert snippet.endswith("...")
    assert len(snippet) == 203
