"""Tag extraction from file paths and content patterns."""

from __future__ import annotations

import re
from typing import List, Set

EXTENSION_TAGS = (
    ((".tsx", ".jsx"), "react"),
    ((".ts",), "typescript"),
    ((".js",), "javascript"),
)


def _import_pattern(module: str) -> re.Pattern[str]:
    quoted = re.escape(module)
    return re.compile(rf"from\s+['\"]{quoted}['\"]|require\(['\"]{quoted}['\"]\)", re.IGNORECASE)


IMPORT_PATTERNS = (
    (_import_pattern("react"), "react"),
    (_import_pattern("react-dom"), "react"),
    (_import_pattern("express"), "express"),
    (_import_pattern("socket.io"), "socket.io"),
    (re.compile(r"from\s+['\"]@?socket\.io/", re.IGNORECASE), "socket.io"),
    (_import_pattern("openai"), "openai"),
    (_import_pattern("next"), "nextjs"),
    (_import_pattern("vue"), "vue"),
    (_import_pattern("angular"), "angular"),
    (re.compile(r"from\s+['\"]@nestjs/", re.IGNORECASE), "nestjs"),
    (_import_pattern("fastify"), "fastify"),
    (_import_pattern("koa"), "koa"),
    (_import_pattern("jest"), "jest"),
    (_import_pattern("vitest"), "vitest"),
    (_import_pattern("mocha"), "mocha"),
    (_import_pattern("cypress"), "cypress"),
    (_import_pattern("playwright"), "playwright"),
)

ROUTE_HANDLER_RE = re.compile(r"\b(?:app|router)\.(?:get|post|put|delete|patch)\(", re.IGNORECASE)
EVENT_RE = re.compile(r"\bio\.on\(|\bsocket\.(?:on|emit)\(", re.IGNORECASE)
HOOK_RE = re.compile(r"\buse(?:State|Effect|Callback|Memo|Ref)\b", re.IGNORECASE)
ASSERTION_RE = re.compile(r"\b(?:describe|it|test|expect)\(", re.IGNORECASE)
COMPONENT_CLASS_RE = re.compile(r"class\s+\w+.*extends.*Component")

PATH_TAGS = (
    (("/api/", "/routes/"), "api"),
    (("/components/", "/component/"), "components"),
    (("/hooks/", "/hook/"), "hooks"),
    (("/utils/", "/util/"), "utils"),
    (("/services/", "/service/"), "services"),
    (("/models/", "/model/"), "models"),
    (("/types/", "/type/"), "types"),
    (("dockerfile", "docker-compose"), "docker"),
    ((".github/workflows", "ci.yml", "ci.yaml"), "ci"),
    (("railway", "vercel", "netlify"), "deployment"),
)
TEST_PATH_MARKERS = (".test.", ".spec.", "/test/", "/tests/", "/__tests__/", "/e2e/")


def extract_tags(content: str, path: str) -> List[str]:
    """Return the sorted, de-duplicated tags for ``content`` found at ``path``."""
    tags: Set[str] = set()
    lowered = "/" + path.replace("\\", "/").lower()

    for extensions, tag in EXTENSION_TAGS:
        if lowered.endswith(extensions):
            tags.add(tag)

    for pattern, tag in IMPORT_PATTERNS:
        if pattern.search(content):
            tags.add(tag)

    if ROUTE_HANDLER_RE.search(content):
        tags.add("api")
    if EVENT_RE.search(content):
        tags.add("websocket")
    if HOOK_RE.search(content):
        tags.update(("react", "hooks"))
    if ASSERTION_RE.search(content):
        tags.add("testing")
    if COMPONENT_CLASS_RE.search(content):
        tags.add("react")

    for markers, tag in PATH_TAGS:
        if any(marker in lowered for marker in markers):
            tags.add(tag)

    if any(marker in lowered for marker in TEST_PATH_MARKERS):
        tags.add("testing")
        if "/e2e/" in lowered:
            tags.add("e2e")

    return sorted(tags)
