from __future__ import annotations

from typing import TYPE_CHECKING

from extract.route_discovery import (
    discover_route_handlers,
    handlers_to_calls,
    merge_discovered_calls,
    route_url,
)
from extract.route_files import match_route_dir, pathname_from_url
from models.calls import RawCall
from parse.source_model import SourceCache

if TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, rel_path: str, content: str) -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _routes(root: Path) -> None:
    _write(
        root,
        "app/api/route.ts",
        "export async function GET() {\n  return Response.json({ ok: true });\n}\n",
    )
    _write(
        root,
        "app/api/users/route.ts",
        "export async function GET() {\n  return Response.json([]);\n}\n"
        "\n"
        "export const POST = async (req: Request) => Response.json(await req.json());\n"
        "\n"
        "function helper() {}\n",
    )
    _write(
        root,
        "app/api/(admin)/reports/[id]/route.ts",
        "export function DELETE() {\n  return new Response(null);\n}\n",
    )
    _write(root, "app/api/empty/route.ts", "export const config = {};\n")


def test_discover_route_handlers_lists_exported_methods(tmp_path: Path) -> None:
    _routes(tmp_path)

    handlers = discover_route_handlers(SourceCache(), tmp_path, "app/api")

    assert [(h.method, h.url) for h in handlers] == [
        ("DELETE", "/api/reports/[id]"),
        ("GET", "/api"),
        ("GET", "/api/users"),
        ("POST", "/api/users"),
    ]
    post = handlers[-1]
    assert post.function_name == "POST"
    assert post.function_code.startswith("export const POST = async")
    assert post.function_file.endswith("users/route.ts")


def test_route_url_uses_prefix(tmp_path: Path) -> None:
    route_file = _write(tmp_path, "api/v1/items/route.ts", "export {};\n")

    assert route_url(route_file, tmp_path / "api", "/rest/") == "/rest/v1/items"
    assert route_url(tmp_path / "api" / "route.ts", tmp_path / "api") == "/api"


def test_handlers_to_calls_marks_discovered_calls(tmp_path: Path) -> None:
    _routes(tmp_path)
    handlers = discover_route_handlers(SourceCache(), tmp_path, "app/api")

    calls = handlers_to_calls(handlers)

    assert {(c.line, c.column, c.source, c.confidence) for c in calls} == {
        (1, 1, "custom", "high")
    }
    assert all(c.function_resolution_confidence == "high" for c in calls)
    assert all(c.file == c.function_file for c in calls)


def _raw(method: str, url: str, source: str = "fetch") -> RawCall:
    return RawCall(
        method=method,
        url=url,
        line=3,
        column=5,
        file="src/ui.ts",
        source=source,  # type: ignore[arg-type]
        confidence="high",
    )


def test_merge_adds_only_unreferenced_endpoints() -> None:
    detected = [_raw("get", "/api/users"), _raw("POST", "/api/users")]
    discovered = [
        _raw("GET", "/api/users", "custom"),
        _raw("GET", "/api/widgets", "custom"),
        _raw("GET", "/api/widgets", "custom"),
    ]

    merged = merge_discovered_calls(detected, discovered)

    assert merged[:2] == detected
    assert [(c.method, c.url) for c in merged[2:]] == [("GET", "/api/widgets")]


def test_match_route_dir_prefers_literal_over_dynamic(tmp_path: Path) -> None:
    _write(tmp_path, "api/users/me/route.ts", "export {};\n")
    _write(tmp_path, "api/users/[id]/route.ts", "export {};\n")
    _write(tmp_path, "api/docs/[...slug]/route.ts", "export {};\n")

    routes = tmp_path / "api"

    assert match_route_dir(routes, ["users", "me"]) == routes / "users" / "me"
    assert match_route_dir(routes, ["users", "42"]) == routes / "users" / "[id]"
    assert match_route_dir(routes, ["docs", "a", "b"]) == routes / "docs" / "[...slug]"
    assert match_route_dir(routes, ["missing"]) is None


def test_pathname_from_url() -> None:
    assert pathname_from_url("https://example.com/api/users?x=1") == "/api/users"
    assert pathname_from_url("/api/users#top") == "/api/users"
    assert pathname_from_url("/api/users/${id}") == "/api/users/${id}"
