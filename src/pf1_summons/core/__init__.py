"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        SummonsError: Base exception for all package errors.
        ConfigurationError, ValidationError, DiceRollError: Input problems.
        CatalogError, TemplateNotFoundError: Catalog lookups.
        PlacementError, PlacementCancelledError, SpawnAbortedError: Spawning.
        CombatIntegrationError, ExpirationError, LedgerError: Tracking.

    Configuration:
        Settings: Top-level settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up package logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from pf1_summons.core.config import (
    Settings,
    SummonSettings,
    TrackingSettings,
    clear_settings_cache,
    get_settings,
)
from pf1_summons.core.exceptions import (
    CatalogError,
    CombatIntegrationError,
    ConfigurationError,
    DiceRollError,
    ExpirationError,
    LedgerError,
    PlacementCancelledError,
    PlacementError,
    SpawnAbortedError,
    SummonsError,
    TemplateNotFoundError,
    ValidationError,
)
from pf1_summons.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Exceptions
    "SummonsError",
    "ConfigurationError",
    "ValidationError",
    "DiceRollError",
    "CatalogError",
    "TemplateNotFoundError",
    "PlacementError",
    "PlacementCancelledError",
    "SpawnAbortedError",
    "CombatIntegrationError",
    "ExpirationError",
    "LedgerError",
    # Configuration
    "Settings",
    "SummonSettings",
    "TrackingSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
