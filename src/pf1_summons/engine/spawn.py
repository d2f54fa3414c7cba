"""Sequential placement of summoned instances."""

from __future__ import annotations

from pf1_summons.core.exceptions import PlacementError, SpawnAbortedError
from pf1_summons.core.logging import get_logger
from pf1_summons.host.protocols import Notifications, PlacementTool, SceneIndex
from pf1_summons.models import ActorDocument, PlacementRequest, SpawnResult, TokenDocument


logger = get_logger(__name__)


class SpawnLoop:
    """Places one instance at a time until the requested count is reached.

    Each placement waits for the previous one to be confirmed, since every
    pick may depend on the scene as the last one left it. The first token of
    the first placement becomes the tracked token of the summon.

    Example:
        >>> loop = SpawnLoop(host.placement, host.scene, host.notifications)
        >>> result = await loop.run(actor, summoner_token, radius=35, needed=3)
        >>> result.first_token_id
    """

    def __init__(
        self,
        placement: PlacementTool,
        scene: SceneIndex,
        notifications: Notifications,
    ) -> None:
        self.placement = placement
        self.scene = scene
        self.notifications = notifications

    async def run(
        self,
        actor: ActorDocument,
        origin: TokenDocument,
        *,
        radius: int,
        needed: int,
    ) -> SpawnResult:
        """Run the placement loop.

        Args:
            actor: The created summon to place.
            origin: The summoner's token, centre of the placement radius.
            radius: Maximum distance from the origin.
            needed: Number of instances to place.

        Returns:
            The placed token ids and the tracked first token.

        Raises:
            SpawnAbortedError: If a placement fails or is cancelled. The
                error carries the partial result collected so far.
        """
        result = SpawnResult(needed=needed)

        while result.spawned < needed:
            self.notifications.info(
                f"Click spawn location for {actor.name} within {radius} ft of summoner "
                f"({result.spawned} of {needed})"
            )
            request = PlacementRequest(actor=actor, origin=origin, radius=radius)
            try:
                token_ids = await self.placement.place(request)
            except PlacementError as exc:
                logger.warning(
                    "Placement failed, aborting spawn loop",
                    actor_id=actor.id,
                    spawned=result.spawned,
                    needed=needed,
                    error=exc.message,
                )
                raise SpawnAbortedError(
                    "Spawn loop aborted",
                    result=result,
                    spawned=result.spawned,
                    needed=needed,
                ) from exc

            if result.spawned == 0:
                token_ids = token_ids or self._find_placed_token(actor)
                result.first_token_id = token_ids[0] if token_ids else None
            result.token_ids.extend(token_ids)
            result.spawned += 1
            logger.debug(
                "Instance placed",
                actor_id=actor.id,
                token_ids=token_ids,
                spawned=result.spawned,
                needed=needed,
            )

        self.notifications.info("Done spawning summons!")
        return result

    def _find_placed_token(self, actor: ActorDocument) -> list[str]:
        """Scan the scene for any token of the actor.

        Used only when the placement tool reports no ids for the first
        placement. Any token of the actor may be picked up here, not
        necessarily the one just placed.
        """
        token = next((t for t in self.scene.tokens() if t.actor_id == actor.id), None)
        if token is None:
            logger.warning("No placed token found for summon", actor_id=actor.id)
            return []
        logger.warning(
            "Placement reported no tokens, tracking first scene token of the actor",
            actor_id=actor.id,
            token_id=token.id,
        )
        return [token.id]


__all__ = ["SpawnLoop"]
