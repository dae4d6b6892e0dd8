"""Settings resolution: env vars and .env over a named profile in the TOML config."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "prwatch" / "config.toml"

DEFAULT_V4_ENDPOINT = "https://api.github.com/graphql"


class PrwatchSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PRWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # GitHub
    access_token: SecretStr | None = None
    v4_endpoint: str = DEFAULT_V4_ENDPOINT
    timeout: float = 30.0  # seconds, per HTTP request

    verbose: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs, env vars and .env win over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/prwatch/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> PrwatchSettings:
    """Resolve the active profile and return fully populated PrwatchSettings.

    Precedence for choosing the profile (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. PRWATCH_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/prwatch/config.toml

    Env vars and .env always override values from the profile block.
    """
    toml_config = _load_toml()

    active = profile or os.environ.get("PRWATCH_DEFAULT_PROFILE") or toml_config.get("default_profile")

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}", err=True)
            raise typer.Exit(1)

    return PrwatchSettings(**profile_defaults)
