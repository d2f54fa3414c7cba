"""Expiration records stored against a summoning actor.

A record is a discriminated union on ``mode``: combat records count rounds
inside one turn-order session, calendar records compare against the
absolute world clock. Records are frozen; the only change a record ever
undergoes is being replaced by a calendar record when its combat ends.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


EXPIRATIONS_FLAG = "summonExpirations"
"""Flag key under which an owner's record list is stored."""


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(UTC)


class _ExpirationBase(BaseModel):
    """Fields shared by both record modes.

    Attributes:
        actor_id: The summoned actor.
        token_id: First placed token of the summon.
        created: When the record was written.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    actor_id: str = Field(description="Summoned actor")
    token_id: str = Field(description="First placed token")
    created: datetime = Field(default_factory=utc_now, description="Record creation time")

    def age_seconds(self, now: datetime) -> float:
        """Seconds elapsed since the record was created."""
        return (now - self.created).total_seconds()


class CombatExpiration(_ExpirationBase):
    """A duration measured in rounds of one turn-order session."""

    mode: Literal["combat"] = Field(default="combat")
    combat_id: str = Field(description="Turn-order session the record is scoped to")
    expire_round: int = Field(description="Round at which the summon expires")

    def to_calendar(
        self,
        *,
        final_round: int,
        world_time: float,
        seconds_per_round: int,
        now: datetime,
    ) -> CalendarExpiration | None:
        """Convert the remaining rounds into a world-clock deadline.

        Args:
            final_round: Round the session ended on.
            world_time: World clock at conversion.
            seconds_per_round: Conversion factor.
            now: Timestamp for the new record's ``created``.

        Returns:
            A calendar record, or None if no rounds remain.
        """
        remaining_rounds = self.expire_round - final_round
        if remaining_rounds <= 0:
            return None
        return CalendarExpiration(
            actor_id=self.actor_id,
            token_id=self.token_id,
            expire_time=world_time + remaining_rounds * seconds_per_round,
            created=now,
        )


class CalendarExpiration(_ExpirationBase):
    """A duration measured against the absolute world clock."""

    mode: Literal["calendar"] = Field(default="calendar")
    expire_time: float = Field(description="World-clock value at which the summon expires")


ExpirationRecord = Annotated[
    CombatExpiration | CalendarExpiration,
    Field(discriminator="mode"),
]
"""Discriminated union of both record modes, keyed on ``mode``."""

_RECORD_ADAPTER: TypeAdapter[CombatExpiration | CalendarExpiration] = TypeAdapter(
    ExpirationRecord
)


def load_record(data: Any) -> CombatExpiration | CalendarExpiration:
    """Validate one stored record.

    Raises:
        pydantic.ValidationError: If the data does not match either mode.
    """
    return _RECORD_ADAPTER.validate_python(data)


def dump_record(record: CombatExpiration | CalendarExpiration) -> dict[str, Any]:
    """Serialise a record into the JSON-compatible form stored in flags."""
    return record.model_dump(mode="json")


__all__ = [
    "EXPIRATIONS_FLAG",
    "utc_now",
    "CombatExpiration",
    "CalendarExpiration",
    "ExpirationRecord",
    "load_record",
    "dump_record",
]
