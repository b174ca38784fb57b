from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.main import app

# (path, method, status) -> response model the kiosk front end reads
REQUIRED_RESPONSES: dict[tuple[str, str, str], str] = {
    ("/api/config/form", "get", "200"): "FormConfigOut",
    ("/api/locations/nearest", "get", "200"): "NearestLocationResponse",
    ("/api/session/", "get", "200"): "SessionView",
    ("/api/session/bootstrap", "post", "202"): "SessionView",
    ("/api/session/sign-in", "post", "200"): "SessionView",
    ("/api/session/sign-out", "post", "200"): "SessionView",
    ("/api/session/rating", "post", "200"): "SessionView",
    ("/api/session/done", "post", "200"): "SessionView",
}
# fields of the backend connection block that must never reach the front end
SECRET_FIELDS = {"serviceNow", "service_now", "password", "username"}


def _response_model(schema: dict[str, Any], path: str, method: str, status: str) -> str | None:
    operation = schema.get("paths", {}).get(path, {}).get(method)
    if operation is None:
        return None
    content = operation.get("responses", {}).get(status, {}).get("content", {})
    ref = content.get("application/json", {}).get("schema", {}).get("$ref", "")
    return ref.rsplit("/", 1)[-1] or None


def check_responses(schema: dict[str, Any]) -> list[str]:
    problems: list[str] = []
    for (path, method, status), expected in REQUIRED_RESPONSES.items():
        if path not in schema.get("paths", {}):
            problems.append(f"OpenAPI schema has no {path} path.")
            continue
        found = _response_model(schema, path, method, status)
        if found != expected:
            problems.append(f"{method.upper()} {path} returns {found} on {status}, expected {expected}.")
    return problems


def check_form_config_is_public(schema: dict[str, Any]) -> list[str]:
    properties = schema.get("components", {}).get("schemas", {}).get("FormConfigOut", {}).get("properties", {})
    leaked = sorted(SECRET_FIELDS & set(properties))
    return [f"FormConfigOut exposes backend field {name}." for name in leaked]


def main() -> int:
    schema = app.openapi()
    problems = ["OpenAPI schema has no /api/health path."] if "/api/health" not in schema.get("paths", {}) else []
    problems.extend(check_responses(schema))
    problems.extend(check_form_config_is_public(schema))

    if problems:
        for problem in problems:
            print(f"[error] {problem}", file=sys.stderr)
        return 1

    print("OpenAPI kiosk routes and response models verified")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
