"""Advance winners and losers into the matches their results feed."""

from __future__ import annotations

import datetime
import logging
import math
import uuid
from typing import Callable, Optional

from fantabeach.core.constants import (
    MATCH_ID_PREFIX,
    POOL_ADVANCE_ROUND,
    PROGRESSION_BEST_OF,
)

from .models import (
    KNOCKOUT_PHASES,
    Match,
    MatchStatus,
    Phase,
    ProgressionChange,
    ProgressionResult,
    utcnow,
)

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_match_id() -> str:
    """Generate an id for a match created by progression."""
    return f"{MATCH_ID_PREFIX}_{uuid.uuid4().hex}"


def _find_index(
    matches: list[Match], tournament_id: str, phase: Phase, round_: int, slot: int
) -> int:
    key = (tournament_id, phase, round_, slot)
    for index, match in enumerate(matches):
        if match.key == key:
            return index
    return -1


def _build_progression_match(
    source: Match,
    round_: int,
    slot: int,
    now: datetime.datetime,
    id_factory: IdFactory,
) -> Match:
    return Match(
        id=id_factory(),
        tournament_id=source.tournament_id,
        phase=source.phase,
        day=source.day,
        round=round_,
        slot=slot,
        status=MatchStatus.SCHEDULED,
        best_of=PROGRESSION_BEST_OF,
        scheduled_at=source.completed_at or source.scheduled_at or now,
    )


def _upsert_progression_match(  # noqa: PLR0913
    matches: list[Match],
    changes: list[ProgressionChange],
    source: Match,
    round_: int,
    slot: int,
    *,
    pair_a_id: Optional[str] = None,
    pair_b_id: Optional[str] = None,
    now: datetime.datetime,
    id_factory: IdFactory,
) -> None:
    """Create the target match or fill the supplied sides of an open one."""
    index = _find_index(matches, source.tournament_id, source.phase, round_, slot)

    if index < 0:
        created = _build_progression_match(source, round_, slot, now, id_factory)
        if pair_a_id:
            created.pair_a_id = pair_a_id
        if pair_b_id:
            created.pair_b_id = pair_b_id
        matches.append(created)
        changes.append(ProgressionChange(action="created", after=created.copy()))
        return

    existing = matches[index]
    if existing.is_completed:
        logger.debug(
            "Skipping progression into completed match %s (%s R%s M%s)",
            existing.id,
            existing.phase.value,
            round_,
            slot,
        )
        return

    updated = existing.copy()
    changed = False
    if pair_a_id and updated.pair_a_id != pair_a_id:
        updated.pair_a_id = pair_a_id
        changed = True
    if pair_b_id and updated.pair_b_id != pair_b_id:
        updated.pair_b_id = pair_b_id
        changed = True

    if not changed:
        return

    matches[index] = updated
    changes.append(
        ProgressionChange(action="updated", before=existing.copy(), after=updated.copy())
    )


def advance_knockout_winner(
    matches: list[Match],
    completed_match: Match,
    changes: list[ProgressionChange],
    *,
    now: datetime.datetime,
    id_factory: IdFactory,
) -> None:
    """Place the winner of a single-elimination match into the next round.

    Slot ``s`` feeds slot ``ceil(s / 2)``; odd slots fill side A, even slots
    side B.
    """
    if completed_match.phase not in KNOCKOUT_PHASES:
        return
    winner = completed_match.decided_winner_pair_id()
    if not winner:
        return

    source_is_odd = completed_match.slot % 2 == 1
    _upsert_progression_match(
        matches,
        changes,
        completed_match,
        completed_match.round + 1,
        math.ceil(completed_match.slot / 2),
        pair_a_id=winner if source_is_odd else None,
        pair_b_id=None if source_is_odd else winner,
        now=now,
        id_factory=id_factory,
    )


def advance_pools(
    matches: list[Match],
    completed_match: Match,
    changes: list[ProgressionChange],
    *,
    now: datetime.datetime,
    id_factory: IdFactory,
) -> None:
    """Fan the two first-round matches of a pool into its winners and losers matches.

    Fires only once both sibling matches are completed with a winner and a
    loser that can be derived.
    """
    if completed_match.phase != Phase.POOLS or completed_match.round != POOL_ADVANCE_ROUND:
        return

    base_slot = completed_match.slot - 1 if completed_match.slot % 2 == 0 else completed_match.slot
    siblings = sorted(
        (
            m
            for m in matches
            if m.tournament_id == completed_match.tournament_id
            and m.phase == Phase.POOLS
            and m.round == POOL_ADVANCE_ROUND
            and m.slot in (base_slot, base_slot + 1)
        ),
        key=lambda m: m.slot,
    )
    if len(siblings) != 2:
        return

    first, second = siblings
    if not (first.is_completed and second.is_completed):
        return

    first_winner, second_winner = first.decided_winner_pair_id(), second.decided_winner_pair_id()
    first_loser, second_loser = first.loser_pair_id(), second.loser_pair_id()
    if not (first_winner and second_winner and first_loser and second_loser):
        logger.debug(
            "Pool at slots %s-%s of tournament %s has no decided result yet",
            base_slot,
            base_slot + 1,
            completed_match.tournament_id,
        )
        return

    pool_index = (base_slot + 1) // 2
    winners_slot = pool_index * 2 - 1
    losers_slot = winners_slot + 1
    next_round = POOL_ADVANCE_ROUND + 1

    _upsert_progression_match(
        matches,
        changes,
        completed_match,
        next_round,
        winners_slot,
        pair_a_id=first_winner,
        pair_b_id=second_winner,
        now=now,
        id_factory=id_factory,
    )
    _upsert_progression_match(
        matches,
        changes,
        completed_match,
        next_round,
        losers_slot,
        pair_a_id=first_loser,
        pair_b_id=second_loser,
        now=now,
        id_factory=id_factory,
    )


def advance(
    matches: list[Match],
    completed_match: Match,
    now: Optional[datetime.datetime] = None,
    id_factory: Optional[IdFactory] = None,
) -> ProgressionResult:
    """Apply both progression rules for a newly completed match.

    Returns a new match list and the change log; the input list and its
    matches are left untouched. Matches that are already completed are never
    modified.
    """
    now = now or utcnow()
    id_factory = id_factory or new_match_id

    next_matches = []
    for match in matches:
        if match.id == completed_match.id and not match.is_completed:
            next_matches.append(completed_match.copy())
        else:
            next_matches.append(match.copy())
    changes: list[ProgressionChange] = []

    advance_knockout_winner(
        next_matches, completed_match, changes, now=now, id_factory=id_factory
    )
    advance_pools(next_matches, completed_match, changes, now=now, id_factory=id_factory)

    return ProgressionResult(matches=next_matches, changes=changes)
