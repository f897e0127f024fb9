import logging
import os

from pydantic import BaseModel, Field


class Settings(BaseModel):
    currency: str = "USD"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    root_path: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("SETTLEMENT_CORS_ORIGINS", "*")
        return cls(
            currency=os.getenv("SETTLEMENT_CURRENCY", "USD"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            root_path=os.getenv("SETTLEMENT_ROOT_PATH", ""),
            log_level=os.getenv("SETTLEMENT_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
