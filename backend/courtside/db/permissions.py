"""
Permission resolution for player data.

Every operation that reads or writes a participant's stats goes through
`IdentityResolver`. The decision itself lives in `resolve_access`, a pure
function over facts the resolver has already loaded, so it can be reasoned
about (and tested) without a database.

Resolution order:
  1. admins always pass
  2. the principal *is* the player (a manual record resolves to its linked
     account)
  3. the principal is a parent of the resolved account
  4. the reference is a manual record with no linked account
  5. everything else is denied

Rule 4 is a permissive default inherited from the system's observed
behaviour; see DESIGN.md before changing it.
"""
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from courtside.core.errors import Forbidden, NotFound
from courtside.core.player_ref import ManualRef, PlayerRef, RegisteredRef
from courtside.core.principal import Principal
from courtside.models.manual_player import ManualPlayer
from courtside.models.parent_child_relation import ParentChildRelation


@dataclass(frozen=True)
class ResolvedPlayer:
    ref: PlayerRef
    account_id: str | None  # registered identity, if any

    @property
    def is_unlinked_manual(self) -> bool:
        return isinstance(self.ref, ManualRef) and self.account_id is None


@dataclass
class AccessFacts:
    """What the resolver knows about a principal before deciding."""

    principal: Principal
    child_ids: frozenset = field(default_factory=frozenset)


def resolve_access(facts: AccessFacts, player: ResolvedPlayer) -> bool:
    principal = facts.principal
    if principal.is_admin:
        return True
    if player.account_id is not None and player.account_id == principal.id:
        return True
    if player.account_id is not None and player.account_id in facts.child_ids:
        return True
    if player.is_unlinked_manual:
        return True
    return False


def require_admin(principal: Principal, action: str = "this action"):
    if not principal.is_admin:
        raise Forbidden(f"Admin access required for {action}")


async def get_child_ids(db: AsyncSession, parent_id: str) -> frozenset:
    result = await db.execute(
        select(ParentChildRelation.child_id).where(
            ParentChildRelation.parent_id == parent_id
        )
    )
    return frozenset(row[0] for row in result.all())


async def resolve_player(db: AsyncSession, ref: PlayerRef) -> ResolvedPlayer:
    match ref:
        case RegisteredRef(account_id=account_id):
            return ResolvedPlayer(ref=ref, account_id=account_id)
        case ManualRef(manual_id=manual_id):
            manual = await db.get(ManualPlayer, manual_id)
            if manual is None:
                raise NotFound(f"Manual player {manual_id} not found")
            return ResolvedPlayer(ref=ref, account_id=manual.linked_account_id)
    raise TypeError(f"not a player reference: {ref!r}")


class IdentityResolver:
    """
    Answers can_view / can_mutate for one principal.

    Parent relations are loaded once per resolver, so build one per request
    and reuse it across the roster entries of a listing.
    """

    def __init__(self, db: AsyncSession, principal: Principal):
        self.db = db
        self.principal = principal
        self._facts = None

    async def facts(self) -> AccessFacts:
        if self._facts is None:
            child_ids = frozenset()
            if not self.principal.is_admin:
                child_ids = await get_child_ids(self.db, self.principal.id)
            self._facts = AccessFacts(principal=self.principal, child_ids=child_ids)
        return self._facts

    async def can_view(self, ref: PlayerRef) -> bool:
        if self.principal.is_admin:
            return True
        player = await resolve_player(self.db, ref)
        return resolve_access(await self.facts(), player)

    # same rules as viewing; kept separate so the two can diverge
    async def can_mutate(self, ref: PlayerRef) -> bool:
        return await self.can_view(ref)

    async def require_mutate(self, ref: PlayerRef):
        if not await self.can_mutate(ref):
            raise Forbidden("Permission denied: you can only change stats for yourself or your children")
