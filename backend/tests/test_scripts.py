from __future__ import annotations

import json
from pathlib import Path

from conftest import PROJECT_ROOT
from scripts import validate_form_config, validate_openapi


def test_shipped_form_config_is_valid() -> None:
    assert validate_form_config.main(PROJECT_ROOT / "backend" / "config" / "form_config.json") == 0


def test_form_config_problems_are_reported(tmp_path: Path, capsys) -> None:
    document = {
        "version": "2.0.0",
        "versionHistory": [{"version": "1.0.0", "timestamp": "2025-01-01T00:00:00Z"}],
        "formFields": [
            {"id": "visitorName", "label": "Name"},
            {"id": "visitorName", "label": "Name again", "serviceNowField": "u_name"},
            {"id": "purpose", "type": "dropdown", "label": "Purpose", "serviceNowField": "u_purpose"},
        ],
    }
    path = tmp_path / "form_config.json"
    path.write_text(json.dumps(document), encoding="utf-8")

    assert validate_form_config.main(path) == 1

    err = capsys.readouterr().err
    assert "Duplicate form field id: visitorName" in err
    assert "Expected exactly one signature field, found 0" in err
    assert "Dropdown field purpose has no options" in err
    assert "Visitor name field visitorName is missing or has no column" in err
    assert "Version 2.0.0 is not the latest" in err


def test_unreadable_form_config(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    assert validate_form_config.main(path) == 1


def test_openapi_exposes_kiosk_routes() -> None:
    assert validate_openapi.main() == 0


def test_openapi_response_model_drift_is_reported() -> None:
    schema = {
        "paths": {
            "/api/session/sign-in": {
                "post": {
                    "responses": {
                        "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/SignInResult"}}}}
                    }
                }
            }
        },
        "components": {"schemas": {"FormConfigOut": {"properties": {"version": {}, "serviceNow": {}}}}},
    }

    problems = validate_openapi.check_responses(schema)

    assert "POST /api/session/sign-in returns SignInResult on 200, expected SessionView." in problems
    assert "OpenAPI schema has no /api/session/rating path." in problems
    assert validate_openapi.check_form_config_is_public(schema) == ["FormConfigOut exposes backend field serviceNow."]
