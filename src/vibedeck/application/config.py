from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class AppConfig(BaseSettings):
    """
    Configuration model for vibedeck.
    Supports loading from:
    1. Environment variables (VIBEDECK_*)
    2. Config file (~/.config/vibedeck/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="VIBEDECK_",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/vibedeck")
    content_dir: Path | None = None

    # Session
    seed: int | None = None  # fixed RNG seed for reproducible shuffles

    # Logging: 0=WARNING, 1=INFO, 2+=DEBUG
    verbose: int = 0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Home may be patched at runtime (tests), so resolve lazily
        toml_files = [
            Path.home() / ".config/vibedeck/config.toml",
            Path.home() / ".vibedeck.toml",
        ]
        toml_file = next((f for f in toml_files if f.exists()), None)

        # Highest priority first: CLI overrides, then env, then the file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("content_dir", mode="before")
    @classmethod
    def resolve_content_dir(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/vibedeck/config.toml (if exists)
    3. Environment variables (VIBEDECK_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.content_dir is None:
        # Fall back to ./content when run from a checkout
        candidate = Path.cwd() / "content"
        if candidate.is_dir():
            config.content_dir = candidate.resolve()

    return config
