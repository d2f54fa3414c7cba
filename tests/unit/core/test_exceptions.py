"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

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
from pf1_summons.models import SpawnResult


class TestSummonsError:
    """Tests for the base SummonsError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = SummonsError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = SummonsError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(SummonsError("Test", details={"x": 1}))
        assert "SummonsError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestInputExceptions:
    """Tests for configuration and validation errors."""

    def test_configuration_error_with_key(self) -> None:
        """Test ConfigurationError records the key."""
        exc = ConfigurationError("Bad value", config_key="token_wait_timeout")
        assert exc.details["config_key"] == "token_wait_timeout"

    def test_dice_roll_error_is_validation_error(self) -> None:
        """Test DiceRollError carries the expression and is a ValidationError."""
        exc = DiceRollError("Invalid", expression="1d")
        assert isinstance(exc, ValidationError)
        assert exc.details["expression"] == "1d"

    def test_validation_error_with_field(self) -> None:
        """Test ValidationError records field and value."""
        exc = ValidationError("Bad", field_name="cl_override", invalid_value=-2)
        assert exc.details == {"field_name": "cl_override", "invalid_value": -2}


class TestSummonExceptions:
    """Tests for catalog, spawning and tracking errors."""

    def test_template_not_found_is_catalog_error(self) -> None:
        """Test TemplateNotFoundError carries template and pack."""
        exc = TemplateNotFoundError(
            "Template Dark not found.",
            template="Dark",
            pack_id="summons-for-pf1e.summon-templates",
        )
        assert isinstance(exc, CatalogError)
        assert exc.details["template"] == "Dark"
        assert exc.details["pack_id"] == "summons-for-pf1e.summon-templates"

    def test_placement_cancelled_is_placement_error(self) -> None:
        """Test the placement error hierarchy."""
        with pytest.raises(PlacementError):
            raise PlacementCancelledError("Cancelled")

    def test_spawn_aborted_keeps_partial_result(self) -> None:
        """Test SpawnAbortedError exposes what was placed."""
        partial = SpawnResult(first_token_id="t1", token_ids=["t1"], spawned=1, needed=3)
        exc = SpawnAbortedError("Aborted", result=partial, spawned=1, needed=3)
        assert exc.result is partial
        assert exc.details == {"spawned": 1, "needed": 3}

    def test_combat_integration_error_context(self) -> None:
        """Test CombatIntegrationError records session and round."""
        exc = CombatIntegrationError("Rejected", combat_id="c1", round_number=0)
        assert exc.details == {"combat_id": "c1", "round_number": 0}

    def test_ledger_error_is_expiration_error(self) -> None:
        """Test LedgerError carries the owner."""
        exc = LedgerError("Write failed", owner_id="ezren")
        assert isinstance(exc, ExpirationError)
        assert isinstance(exc, SummonsError)
        assert exc.details["owner_id"] == "ezren"
