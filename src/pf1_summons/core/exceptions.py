"""Exception hierarchy for pf1-summons.

All exceptions inherit from SummonsError so the host integration can catch
one type at its boundary, while each domain error keeps structured context
(formula, template name, actor id, ...) in ``details``.

Example:
    >>> from pf1_summons.core.exceptions import TemplateNotFoundError
    >>> raise TemplateNotFoundError("Template Celestial not found.", template="Celestial")
"""

from __future__ import annotations

from typing import Any


class SummonsError(Exception):
    """Base exception for all pf1-summons errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(SummonsError):
    """Raised when package configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(SummonsError):
    """Raised when summon input fails validation."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


class DiceRollError(ValidationError):
    """Raised when a dice formula cannot be parsed or evaluated."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression is not None:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# Catalog Exceptions
# =============================================================================


class CatalogError(SummonsError):
    """Raised when a catalog pack or document cannot be resolved."""

    def __init__(
        self,
        message: str,
        *,
        pack_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize catalog error with pack context.

        Args:
            message: Human-readable error description.
            pack_id: Identifier of the catalog pack involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if pack_id:
            combined_details["pack_id"] = pack_id
        super().__init__(message, details=combined_details)


class TemplateNotFoundError(CatalogError):
    """Raised when a named template bundle is missing from its pack."""

    def __init__(
        self,
        message: str,
        *,
        template: str | None = None,
        pack_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize template lookup error.

        Args:
            message: Human-readable error description.
            template: Name of the template that was looked up.
            pack_id: Identifier of the template pack.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if template:
            combined_details["template"] = template
        super().__init__(message, pack_id=pack_id, details=combined_details)


# =============================================================================
# Summoning Exceptions
# =============================================================================


class PlacementError(SummonsError):
    """Raised by a placement tool when a spawn location cannot be confirmed."""


class PlacementCancelledError(PlacementError):
    """Raised by a placement tool when the user abandons a pick."""


class SpawnAbortedError(SummonsError):
    """Raised when the spawn loop stops before placing every instance.

    Attributes:
        result: Whatever was placed before the abort.
    """

    def __init__(
        self,
        message: str,
        *,
        result: Any,
        spawned: int,
        needed: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize spawn abort error with loop counters.

        Args:
            message: Human-readable error description.
            result: Partial spawn result collected before the abort.
            spawned: Number of placements completed.
            needed: Number of placements requested.
            details: Optional dictionary containing additional error context.
        """
        self.result = result
        combined_details = details or {}
        combined_details["spawned"] = spawned
        combined_details["needed"] = needed
        super().__init__(message, details=combined_details)


class CombatIntegrationError(SummonsError):
    """Raised when summoned tokens cannot be wired into the turn order."""

    def __init__(
        self,
        message: str,
        *,
        combat_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize combat error with session context.

        Args:
            message: Human-readable error description.
            combat_id: Identifier of the turn-order session.
            round_number: Round when the error occurred.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if combat_id:
            combined_details["combat_id"] = combat_id
        if round_number is not None:
            combined_details["round_number"] = round_number
        super().__init__(message, details=combined_details)


# =============================================================================
# Expiration Exceptions
# =============================================================================


class ExpirationError(SummonsError):
    """Raised when expiration processing fails for an owner."""

    def __init__(
        self,
        message: str,
        *,
        owner_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize expiration error with owner context.

        Args:
            message: Human-readable error description.
            owner_id: Identifier of the summoning actor.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if owner_id:
            combined_details["owner_id"] = owner_id
        super().__init__(message, details=combined_details)


class LedgerError(ExpirationError):
    """Raised when an owner's expiration ledger cannot be read or written."""


__all__ = [
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
]
