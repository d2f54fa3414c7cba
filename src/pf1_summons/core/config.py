"""Configuration management for pf1-summons.

Settings are loaded with pydantic-settings from environment variables and
an optional ``.env`` file, replacing the host's string-keyed settings
registry with typed, validated fields.

Example:
    >>> from pf1_summons.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.summons.destination_folder
    'Summons'

Environment Variables:
    PF1_SUMMONS_PACK_SOURCE: Comma separated package names offering monster packs
    PF1_SUMMONS_PACK_TEMPLATE_SOURCE: Pack holding the summon templates
    PF1_SUMMONS_DESTINATION_FOLDER: Actor folder receiving summoned actors
    PF1_SUMMONS_ENABLE_*: Feature flags for optional summon options
    PF1_SUMMONS_TRACKING_*: Expiration and combat timing knobs
    PF1_SUMMONS_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from pf1_summons.core.exceptions import ConfigurationError


class SummonSettings(BaseSettings):
    """World-level summon options.

    Attributes:
        pack_source: Package names whose Actor packs are offered as sources.
        pack_template_source: Pack id holding the template bundles.
        ignore_compendiums: Pack names hidden from the source list.
        destination_folder: Folder that receives imported summons ("" for none).
        rename_augmented: Append "(Augmented)" to augmented summons.
        use_user_linked_actor_only: Non-GM users may only summon from their
            linked character.
        enable_augment_summoning: Offer the Augment Summoning option.
        enable_extend_metamagic: Offer the Extend metamagic option.
        enable_reach_metamagic: Offer the Reach metamagic option.
        enable_conjured_armor: Offer the Conjured Armor option.
        enable_harrowed_summoning: Offer the Harrowed Summoning options.
    """

    model_config = SettingsConfigDict(
        env_prefix="PF1_SUMMONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pack_source: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["summons-for-pf1e"],
        description="Package names offering monster packs",
    )
    pack_template_source: str = Field(
        default="summons-for-pf1e.summon-templates",
        description="Pack holding summon templates",
    )
    ignore_compendiums: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Pack names excluded from the source list",
    )
    destination_folder: str = Field(
        default="Summons",
        description="Folder receiving summoned actors",
    )
    rename_augmented: bool = Field(
        default=True,
        description="Rename augmented summons",
    )
    use_user_linked_actor_only: bool = Field(
        default=True,
        description="Players summon only from their linked character",
    )
    enable_augment_summoning: bool = Field(default=False, description="Augment Summoning")
    enable_extend_metamagic: bool = Field(default=False, description="Extend metamagic")
    enable_reach_metamagic: bool = Field(default=False, description="Reach metamagic")
    enable_conjured_armor: bool = Field(default=False, description="Conjured Armor")
    enable_harrowed_summoning: bool = Field(default=False, description="Harrowed Summoning")

    @field_validator("pack_source", "ignore_compendiums", mode="before")
    @classmethod
    def split_comma_list(cls, value: object) -> object:
        """Accept the comma separated form stored by the host settings UI.

        Args:
            value: Raw field value.

        Returns:
            A list of trimmed, non-empty names when given a string.
        """
        if isinstance(value, str):
            if value.lstrip().startswith("["):
                return json.loads(value)
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


class TrackingSettings(BaseSettings):
    """Timing knobs for expiration tracking and combat integration.

    Attributes:
        seconds_per_round: World-clock seconds per combat round.
        expiration_grace_seconds: Records younger than this are not evaluated.
        token_wait_timeout: Upper bound on waiting for spawned tokens.
        token_poll_interval: First delay between token lookups.
        token_poll_max_interval: Largest delay between token lookups.
    """

    model_config = SettingsConfigDict(
        env_prefix="PF1_SUMMONS_TRACKING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    seconds_per_round: int = Field(default=6, ge=1, description="Seconds per round")
    expiration_grace_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Age below which records are skipped",
    )
    token_wait_timeout: float = Field(
        default=2.5,
        gt=0,
        le=60,
        description="Token registration wait bound",
    )
    token_poll_interval: float = Field(
        default=0.1,
        gt=0,
        description="Initial token poll interval",
    )
    token_poll_max_interval: float = Field(
        default=0.5,
        gt=0,
        description="Maximum token poll interval",
    )

    @model_validator(mode="after")
    def validate_poll_bounds(self) -> "TrackingSettings":
        """Ensure the poll intervals fit inside the wait bound.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the intervals are inconsistent.
        """
        if self.token_poll_interval > self.token_wait_timeout:
            raise ConfigurationError(
                f"token_poll_interval ({self.token_poll_interval}) must not exceed "
                f"token_wait_timeout ({self.token_wait_timeout})",
                config_key="token_poll_interval",
            )
        if self.token_poll_max_interval < self.token_poll_interval:
            raise ConfigurationError(
                f"token_poll_max_interval ({self.token_poll_max_interval}) must be at "
                f"least token_poll_interval ({self.token_poll_interval})",
                config_key="token_poll_max_interval",
            )
        return self


class Settings(BaseSettings):
    """Top-level settings aggregating all configuration domains.

    Attributes:
        debug: Enable debug mode.
        log_level: Package logging level.
        summons: World-level summon options.
        tracking: Expiration and combat timing knobs.
    """

    model_config = SettingsConfigDict(
        env_prefix="PF1_SUMMONS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    summons: SummonSettings = Field(default_factory=SummonSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "SummonSettings",
    "TrackingSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
