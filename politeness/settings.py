from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyzerSettings(BaseSettings):
    """
    Environment-driven settings for politeness inference.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )

    # ---- Model ----
    # Empty -> ./models/polite-guard-model relative to the working directory
    model_path: str = Field(default="", alias="POLITENESS_MODEL_PATH")
    model_version: str = Field(default="polite-guard-v1", alias="POLITENESS_MODEL_VERSION")

    max_sequence_length: int = Field(default=512, alias="POLITENESS_MAX_SEQUENCE_LENGTH", ge=2)

    # Device: "auto" | "cpu" | "cuda"
    device: str = Field(default="cpu", alias="POLITENESS_DEVICE")

    # ---- Logging ----
    log_level: str = Field(default="INFO", alias="POLITENESS_LOG_LEVEL")


def load_settings() -> AnalyzerSettings:
    return AnalyzerSettings()
