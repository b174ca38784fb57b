from .core.config import settings
from .core.form_config import load_kiosk_config, resolve_backend_config, resolve_local_timezone
from .schemas.form_config import KioskConfig
from .services.records import RecordLifecycleClient
from .services.sessions import SessionController


class KioskServiceManager:
    """Process-wide kiosk services. One kiosk process serves one session."""

    config: KioskConfig | None = None
    client: RecordLifecycleClient | None = None
    controller: SessionController | None = None

    @classmethod
    def get_config(cls) -> KioskConfig:
        if cls.config is None:
            config = load_kiosk_config(settings.form_config_path)
            backend = resolve_backend_config(config, settings)
            cls.config = config.model_copy(update={"service_now": backend})
        return cls.config

    @classmethod
    def get_client(cls) -> RecordLifecycleClient:
        if cls.client is None:
            config = cls.get_config()
            cls.client = RecordLifecycleClient(
                config.service_now,
                config.form_fields,
                platform=settings.upload_platform,
                local_tz=resolve_local_timezone(settings),
                timeout=settings.request_timeout or None,
            )
        return cls.client

    @classmethod
    def get_controller(cls) -> SessionController:
        if cls.controller is None:
            cls.controller = SessionController(cls.get_client(), cls.get_config())
        return cls.controller

    @classmethod
    async def close(cls) -> None:
        if cls.client:
            await cls.client.aclose()
        cls.client = None
        cls.controller = None
        cls.config = None


async def get_kiosk_config() -> KioskConfig:
    return KioskServiceManager.get_config()


async def get_record_client() -> RecordLifecycleClient:
    # shared for the process lifetime, closed in the app lifespan
    return KioskServiceManager.get_client()


async def get_session_controller() -> SessionController:
    return KioskServiceManager.get_controller()
