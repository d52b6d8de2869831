#!/usr/bin/env python3
# This project was developed with assistance from AI tools.
"""Live smoke suite for the Contextual API.

Exercises health, schema, context resolution, structure answers, RFC 7807
errors and (optionally) a real provider round trip against a running server.

Prerequisites:
  - API server running (default localhost:8000)
  - CONTENT_FILE / SCHEMA_FILE pointing at host exports with at least one
    public document (pass its identifier with --doc)
  - A configured AI provider for the generate section (skip with --no-ai)

Usage:
  ./scripts/live-tests.py                       # full suite
  ./scripts/live-tests.py --no-ai               # skip provider calls
  ./scripts/live-tests.py --doc page-42         # use a specific document
  ./scripts/live-tests.py --base http://host:9000
"""

import argparse
import asyncio
import sys
import time

import httpx

HEADERS = {"Origin": "http://localhost:5173", "X-Caller-Id": "live-tests"}
FOOTER = "Source: schema (generated at "

# ---------------------------------------------------------------------------
# Test runner
# ---------------------------------------------------------------------------

PASS = 0
FAIL = 0
ERRORS: list[str] = []
SECTION = ""


def section(name: str):
    global SECTION
    SECTION = name
    print(f"\n{'=' * 60}")
    print(f"  {name}")
    print(f"{'=' * 60}\n")


def ok(name: str, passed: bool, detail: str = ""):
    global PASS, FAIL
    if passed:
        PASS += 1
        print(f"  PASS  {name}")
    else:
        FAIL += 1
        msg = f"[{SECTION}] {name}: {detail}" if detail else f"[{SECTION}] {name}"
        ERRORS.append(msg)
        print(f"  FAIL  {name} -- {detail}")


def has_keys(d: dict, *keys: str) -> bool:
    return all(k in d for k in keys)


def is_problem(body: dict, status: int) -> bool:
    return has_keys(body, "type", "title", "status", "detail") and body.get("status") == status


# ---------------------------------------------------------------------------
# 1. Health
# ---------------------------------------------------------------------------

async def test_health(c: httpx.AsyncClient) -> bool:
    section("Health")

    r = await c.get("/health/")
    ok("GET /health/ returns 200", r.status_code == 200)
    data = r.json()
    ok("status is ok", data.get("status") == "ok")
    ok("reports provider_configured", "provider_configured" in data)

    r = await c.get("/")
    ok("GET / root returns 200", r.status_code == 200)
    ok("root has welcome message", "message" in r.json())
    return bool(data.get("provider_configured"))


# ---------------------------------------------------------------------------
# 2. Schema
# ---------------------------------------------------------------------------

async def test_schema(c: httpx.AsyncClient) -> list[str]:
    section("Schema Snapshot")

    r = await c.get("/api/schema")
    ok("GET /api/schema returns 200", r.status_code == 200)
    data = r.json()
    ok("snapshot has all sections",
       has_keys(data, "post_types", "taxonomies", "acf_field_groups", "generated_at"))
    ok("generated_at is set", bool(data.get("generated_at")))
    slugs = [pt.get("slug") for pt in data.get("post_types", [])]
    print(f"        post types: {', '.join(slugs) or '(none)'}")
    return slugs


# ---------------------------------------------------------------------------
# 3. Context resolution
# ---------------------------------------------------------------------------

async def test_get_context(c: httpx.AsyncClient, doc: str):
    section("Context Resolution")

    for fmt in ("markdown", "plain", "html"):
        r = await c.get("/api/get_context", params={"id": doc, "format": fmt})
        ok(f"GET /api/get_context {doc} ({fmt}) returns 200", r.status_code == 200,
           f"status={r.status_code}")
        if r.status_code == 200:
            data = r.json()
            ok(f"{fmt} content is non-empty", bool(data.get("content")))
            ok(f"{fmt} metadata has modified_gmt", "modified_gmt" in data.get("metadata", {}))

    r = await c.get("/api/get_context", params={"id": "multi"})
    ok("GET /api/get_context multi returns 200", r.status_code == 200)
    data = r.json()
    meta = data.get("metadata", {})
    ok("multi metadata has count and items", has_keys(meta, "count", "items"))
    content = data.get("content", "")
    for key in ("acf_field_groups", "post_types", "taxonomies", "generated_at"):
        ok(f"multi content carries no '{key}'", key not in content)

    # Same request twice -- second should come from the context cache
    t0 = time.monotonic()
    await c.get("/api/get_context", params={"id": doc})
    elapsed = time.monotonic() - t0
    ok("repeat get_context is fast", elapsed < 1.0, f"elapsed={elapsed:.2f}s")

    r = await c.get("/api/list_contexts", params={"post_type": "post", "limit": 5})
    ok("GET /api/list_contexts returns 200", r.status_code == 200)
    data = r.json()
    ok("listing has contexts and pagination", has_keys(data, "contexts", "pagination"))
    ok("listing respects per_page", data.get("pagination", {}).get("per_page") == 5)

    r = await c.get("/api/manifest")
    ok("GET /api/manifest returns 200", r.status_code == 200)
    ok("manifest lists endpoints", "list_contexts" in r.json().get("endpoints", {}))


# ---------------------------------------------------------------------------
# 4. Structure answers (no provider call)
# ---------------------------------------------------------------------------

async def test_structure_answers(c: httpx.AsyncClient, slugs: list[str], configured: bool):
    section("Structure Answers")

    if not configured:
        r = await c.post("/api/generate_context",
                         json={"identifier": "multi", "prompt": "What CPTs are on this site?"})
        ok("unconfigured provider returns 400", r.status_code == 400, f"status={r.status_code}")
        ok("400 is problem details", is_problem(r.json(), 400))
        print("        (provider not configured -- skipping schema answers)")
        return

    r = await c.post("/api/generate_context",
                     json={"identifier": "multi", "prompt": "What CPTs are on this site?"})
    ok("overview returns 200", r.status_code == 200)
    data = r.json()
    output = (data.get("ai") or {}).get("output", "")
    ok("overview answered from schema", (data.get("sources") or {}).get("used_schema") is True)
    ok("overview has exactly one footer", output.count(FOOTER) == 1)
    ok("no provider recorded", data.get("provider") == "")

    if slugs:
        slug = slugs[0]
        r = await c.post("/api/generate_context",
                         json={"identifier": "multi", "prompt": f"ACF for {slug}"})
        output = (r.json().get("ai") or {}).get("output", "")
        ok(f"ACF for {slug} lists its groups", f'ACF Field Groups for "{slug}"' in output)

    r = await c.post("/api/generate_context",
                     json={"identifier": "multi", "prompt": "List ACF assigned to zzqx cpt"})
    output = (r.json().get("ai") or {}).get("output", "")
    ok("unknown post type reported", "could not be found" in output)
    ok("available post types listed", "Available post types:" in output)


# ---------------------------------------------------------------------------
# 5. Provider round trip
# ---------------------------------------------------------------------------

async def test_generate(c: httpx.AsyncClient, doc: str):
    section("Provider Generate")

    body = {"identifier": doc, "prompt": "Summarise this in one sentence."}
    r = await c.post("/api/generate_context", json=body, timeout=90)
    ok("generate returns 200", r.status_code == 200, f"status={r.status_code}")
    data = r.json()
    ok("envelope has provider/model/context",
       has_keys(data, "message", "provider", "model", "context", "ai", "cached"))
    print(f"        provider={data.get('provider')} model={data.get('model')}")
    print(f"        message={data.get('message')}")
    output = (data.get("ai") or {}).get("output", "")
    ok("answer is non-empty", bool(output.strip()), data.get("message", ""))

    if data.get("message") == "AI response generated.":
        r = await c.post("/api/generate_context", json=body, timeout=90)
        ok("identical request served from cache", r.json().get("cached") is True)

    body = {"context_id": doc, "prompt": "List the key facts.", "format": "plain"}
    r = await c.post("/api/generate_context", json=body, timeout=90)
    ok("context_id alias accepted", r.status_code == 200, f"status={r.status_code}")


# ---------------------------------------------------------------------------
# 6. Error handling
# ---------------------------------------------------------------------------

async def test_error_handling(c: httpx.AsyncClient):
    section("Error Handling (RFC 7807)")

    r = await c.get("/api/get_context", params={"id": "post-999999999"})
    ok("404 status code", r.status_code == 404)
    ok("404 is problem details", is_problem(r.json(), 404))
    ok("404 has code", r.json().get("code") == "not_found")

    r = await c.get("/api/get_context", params={"id": "not an id"})
    ok("400 for malformed identifier", r.status_code == 400)
    ok("400 has code", r.json().get("code") == "invalid_identifier")

    r = await c.get("/api/get_context", params={"id": "post-1", "format": "pdf"})
    ok("422 for unknown format", r.status_code == 422)
    ok("422 is problem details", is_problem(r.json(), 422))

    r = await c.get("/api/get_context", params={"id": "multi"}, headers={"X-Request-ID": "live-1"})
    ok("request id accepted", r.status_code == 200)

    r = await c.get("/api/generate_context")
    ok("405 for wrong method", r.status_code == 405)

    r = await c.get("/api/nonexistent")
    ok("non-existent route returns 404", r.status_code == 404)


# ---------------------------------------------------------------------------
# 7. OpenAPI
# ---------------------------------------------------------------------------

async def test_openapi(c: httpx.AsyncClient):
    section("OpenAPI Specification")

    r = await c.get("/openapi.json")
    ok("GET /openapi.json returns 200", r.status_code == 200)
    doc = r.json()
    ok("title is Contextual", "contextual" in doc.get("info", {}).get("title", "").lower())
    paths = doc.get("paths", {})
    for path in (
        "/api/generate_context", "/api/get_context", "/api/list_contexts",
        "/api/manifest", "/api/schema",
    ):
        ok(f"documents {path}", path in paths)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

async def main():
    parser = argparse.ArgumentParser(description="Live smoke suite for the Contextual API")
    parser.add_argument("--base", default="http://localhost:8000", help="Server base URL")
    parser.add_argument("--doc", default="post-1", help="Identifier of a public document")
    parser.add_argument("--no-ai", action="store_true",
                        help="Skip tests that call the AI provider")
    args = parser.parse_args()

    print("=" * 60)
    print("  LIVE TEST SUITE -- Contextual API")
    print("=" * 60)

    async with httpx.AsyncClient(base_url=args.base, headers=HEADERS, timeout=15) as c:
        try:
            r = await c.get("/health/")
            if r.status_code != 200:
                print(f"\n  Server returned {r.status_code} on /health/ -- is it running?")
                sys.exit(2)
        except httpx.ConnectError:
            print(f"\n  Cannot connect to server at {args.base} -- is it running?")
            sys.exit(2)

        configured = await test_health(c)
        slugs = await test_schema(c)
        await test_get_context(c, args.doc)
        await test_structure_answers(c, slugs, configured)
        if configured and not args.no_ai:
            await test_generate(c, args.doc)
        await test_error_handling(c)
        await test_openapi(c)

    print(f"\n{'=' * 60}")
    print(f"  RESULTS: {PASS} passed, {FAIL} failed")
    print(f"{'=' * 60}")

    if ERRORS:
        print("\nFailures:")
        for e in ERRORS:
            print(f"  - {e}")

    sys.exit(0 if FAIL == 0 else 1)


if __name__ == "__main__":
    asyncio.run(main())
