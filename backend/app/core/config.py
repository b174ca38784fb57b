from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "Visitor Kiosk"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO")

    cors_origins: str = Field(default="http://localhost:8081,http://localhost:19006,http://localhost")

    # empty -> backend/config/form_config.json
    form_config_file: str = Field(default="")

    # Record backend connection. Empty values fall back to the "serviceNow" block of the form config.
    instance_url: str = Field(default="")
    instance_username: str = Field(default="")
    instance_password: str = Field(default="")
    visitor_table: str = Field(default="")
    location_table: str = Field(default="cmn_location")

    upload_platform: str = Field(default="web", description="web | native")
    local_timezone: str = Field(default="", description="IANA zone name, empty for system local time")
    request_timeout: float = Field(default=0.0, description="seconds, 0 disables the timeout")

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def form_config_path(self) -> Path:
        if self.form_config_file:
            return Path(self.form_config_file)
        return Path(__file__).resolve().parents[2] / "config" / "form_config.json"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
