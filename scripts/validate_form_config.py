from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from pydantic import ValidationError

from backend.app.core.config import settings
from backend.app.core.form_config import load_kiosk_config
from backend.app.schemas.form_config import KioskConfig


def check_form_fields(config: KioskConfig) -> list[str]:
    problems: list[str] = []
    ids = [field.id for field in config.form_fields]
    duplicates = sorted({field_id for field_id in ids if ids.count(field_id) > 1})
    for field_id in duplicates:
        problems.append(f"Duplicate form field id: {field_id}")

    signature_fields = [field for field in config.form_fields if field.is_signature]
    if len(signature_fields) != 1:
        problems.append(f"Expected exactly one signature field, found {len(signature_fields)}")

    for field in config.form_fields:
        if not field.is_signature and not field.column:
            problems.append(f"Field {field.id} has no serviceNowField column")
        if field.type == "dropdown" and not field.options:
            problems.append(f"Dropdown field {field.id} has no options")
    return problems


def check_record_columns(config: KioskConfig) -> list[str]:
    name_field = config.service_now.columns.visitor_name_field
    field = config.field(name_field)
    if field is None or not field.column:
        return [f"Visitor name field {name_field} is missing or has no column; sign-out lookup would fail"]
    return []


def check_version(config: KioskConfig) -> list[str]:
    if config.version_history and config.version_history[-1].version != config.version:
        return [f"Version {config.version} is not the latest versionHistory entry"]
    return []


def main(path: Path | None = None) -> int:
    path = path or settings.form_config_path
    try:
        config = load_kiosk_config(path)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"[error] Could not load {path}: {exc}", file=sys.stderr)
        return 1

    issues: list[str] = []
    issues.extend(check_form_fields(config))
    issues.extend(check_record_columns(config))
    issues.extend(check_version(config))

    if issues:
        for issue in issues:
            print(f"[warning] {issue}", file=sys.stderr)
        return 1

    print(f"Form config {path.name} (version {config.version}) is valid.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(Path(sys.argv[1]) if len(sys.argv) > 1 else None))
