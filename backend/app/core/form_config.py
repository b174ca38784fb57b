"""Loading of the kiosk configuration document (form fields, UI text, backend connection)."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from zoneinfo import ZoneInfo

from ..schemas.form_config import BackendConfig, KioskConfig
from .config import Settings

logger = logging.getLogger(__name__)


def load_kiosk_config(path: Path) -> KioskConfig:
    with path.open(encoding="utf-8") as handle:
        raw = json.load(handle)
    config = KioskConfig.model_validate(raw)
    logger.info("Loaded kiosk config %s (version %s, %d fields)", path.name, config.version, len(config.form_fields))
    return config


def resolve_backend_config(config: KioskConfig, settings: Settings) -> BackendConfig:
    """The document's connection block, with every non-empty setting taking precedence."""
    overrides = {
        "instance_url": settings.instance_url,
        "username": settings.instance_username,
        "password": settings.instance_password,
        "table_name": settings.visitor_table,
        "location_table": settings.location_table,
    }
    return config.service_now.model_copy(update={key: value for key, value in overrides.items() if value})


def resolve_local_timezone(settings: Settings) -> ZoneInfo | None:
    return ZoneInfo(settings.local_timezone) if settings.local_timezone else None
