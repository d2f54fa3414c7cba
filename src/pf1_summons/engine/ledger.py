"""Per-owner expiration ledger.

Each summoning actor stores its expiration records as one list under the
``summonExpirations`` flag. The list is always read, filtered and written
back as a whole, inside a per-owner lock, so a deletion click and a clock
signal cannot interleave between one owner's read and write.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from pydantic import ValidationError as PydanticValidationError

from pf1_summons.core.exceptions import LedgerError
from pf1_summons.core.logging import get_logger
from pf1_summons.host.protocols import FlagStore
from pf1_summons.models import (
    EXPIRATIONS_FLAG,
    CalendarExpiration,
    CombatExpiration,
    dump_record,
    load_record,
)


logger = get_logger(__name__)

Record = CombatExpiration | CalendarExpiration


@dataclass
class LedgerEdit:
    """A pending rewrite of one owner's record list.

    Attributes:
        owner_id: The summoning actor.
        original: Records as read when the edit began.
        records: Records to write back; replace or filter freely.
    """

    owner_id: str
    original: list[Record]
    records: list[Record] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """Whether the list differs from what was read."""
        return self.records != self.original


class ExpirationLedger:
    """Reads and writes expiration records stored against owners.

    Example:
        >>> ledger = ExpirationLedger(host.flags)
        >>> async with ledger.edit(owner_id) as edit:
        ...     edit.records = [r for r in edit.records if r.actor_id != actor_id]
    """

    def __init__(self, flags: FlagStore) -> None:
        self.flags = flags
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def records(self, owner_id: str) -> list[Record]:
        """Validated records of one owner; malformed entries are dropped."""
        raw = self.flags.get_flag(owner_id, EXPIRATIONS_FLAG)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring non-list expiration flag", owner_id=owner_id)
            return []

        records: list[Record] = []
        for entry in raw:
            try:
                records.append(load_record(entry))
            except PydanticValidationError as exc:
                logger.warning(
                    "Dropping malformed expiration record",
                    owner_id=owner_id,
                    errors=exc.error_count(),
                )
        return records

    def has_records(self, owner_id: str) -> bool:
        """Whether an owner has any stored records."""
        return bool(self.flags.get_flag(owner_id, EXPIRATIONS_FLAG))

    @asynccontextmanager
    async def edit(self, owner_id: str) -> AsyncIterator[LedgerEdit]:
        """Hold the owner's lock around a read-modify-write.

        The list is written back on a clean exit, and only if it changed.
        If the body raises, nothing is written and the stored list keeps
        its prior state.

        Raises:
            LedgerError: If the write is rejected by the flag store.
        """
        async with self._locks[owner_id]:
            current = self.records(owner_id)
            pending = LedgerEdit(owner_id=owner_id, original=current, records=list(current))
            yield pending
            if pending.changed:
                await self._write(owner_id, pending.records)

    async def append(self, owner_id: str, record: Record) -> None:
        """Add one record to the end of an owner's list."""
        async with self.edit(owner_id) as pending:
            pending.records.append(record)
        logger.debug(
            "Expiration recorded",
            owner_id=owner_id,
            actor_id=record.actor_id,
            mode=record.mode,
        )

    async def _write(self, owner_id: str, records: list[Record]) -> None:
        try:
            await self.flags.set_flag(
                owner_id, EXPIRATIONS_FLAG, [dump_record(r) for r in records]
            )
        except Exception as exc:
            raise LedgerError(
                f"Failed to write expiration records: {exc}",
                owner_id=owner_id,
                details={"records": len(records)},
            ) from exc


__all__ = ["Record", "LedgerEdit", "ExpirationLedger"]
