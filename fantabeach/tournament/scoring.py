"""Fantasy point totals per team owner from completed match results."""

from __future__ import annotations

import datetime
import logging
from collections import defaultdict
from typing import Iterable, Mapping, Optional, Union

from fantabeach.core.constants import BASE_POINT_SETS, SWEEP_SET_COUNT

from .models import (
    FantasyTeam,
    Match,
    MatchStatus,
    PairLookup,
    ScoringConfig,
    Tournament,
    UserScoreTotal,
)

logger = logging.getLogger(__name__)

Pairs = Union[PairLookup, Mapping[str, Iterable[str]]]


def compute_winner(match: Match) -> Optional[str]:
    """Return the pair that won the majority of sets, or None on a tie."""
    return match.majority_winner_pair_id()


def _is_scored(match: Match, tournament_id: str) -> bool:
    return (
        match.tournament_id == tournament_id
        and match.status == MatchStatus.COMPLETED
        and match.completed_at is not None
    )


def calculate_player_points_by_match(
    match: Match, pairs: Pairs, config: ScoringConfig
) -> dict[str, float]:
    """Points earned by each player in a single match.

    Each side gets its points from the first two sets times the base
    multiplier. Every player of the winning pair also gets the 2-0 bonus when
    the match lasted exactly two sets, otherwise the 2-1 bonus.
    """
    lookup = PairLookup.coerce(pairs)
    points: dict[str, float] = defaultdict(float)

    base_sets = match.set_scores[:BASE_POINT_SETS]
    pair_a_base = sum(s.pair_a_score for s in base_sets)
    pair_b_base = sum(s.pair_b_score for s in base_sets)

    for player_id in lookup.players_for(match.pair_a_id):
        points[player_id] += pair_a_base * config.base_point_multiplier
    for player_id in lookup.players_for(match.pair_b_id):
        points[player_id] += pair_b_base * config.base_point_multiplier

    winner = match.winner_pair_id or compute_winner(match)
    if winner:
        won_a, won_b = match.sets_won()
        sets_won = 0
        if winner == match.pair_a_id:
            sets_won = won_a
        elif winner == match.pair_b_id:
            sets_won = won_b

        if sets_won >= SWEEP_SET_COUNT and len(match.set_scores) == SWEEP_SET_COUNT:
            bonus = config.bonus_win_20
        else:
            bonus = config.bonus_win_21
        for player_id in lookup.players_for(winner):
            points[player_id] += bonus

    return dict(points)


def _players_in(matches: Iterable[Match], lookup: PairLookup) -> set[str]:
    played = set()
    for match in matches:
        for pair_id in match.pair_ids:
            played.update(lookup.players_for(pair_id))
    return played


def select_counted_players(team: FantasyTeam, played: set[str]) -> list[str]:
    """Pick the starters who played, substituting the first unused reserve that did.

    A starter with no eligible reserve left is dropped. Each reserve replaces
    at most one starter.
    """
    counted = []
    used_reserves: set[str] = set()
    for starter in team.starters:
        if starter in played:
            counted.append(starter)
            continue
        replacement = next(
            (r for r in team.reserves if r not in used_reserves and r in played),
            None,
        )
        if replacement is not None:
            used_reserves.add(replacement)
            counted.append(replacement)
    return counted


def compute_tournament_totals(
    tournament: Tournament,
    teams: Iterable[FantasyTeam],
    matches: Iterable[Match],
    pairs: Pairs,
    config: ScoringConfig,
) -> list[UserScoreTotal]:
    """Compute each team owner's total, highest first.

    Only matches completed at or after the owner's registration decide who
    played; points come from the whole-tournament ledger. Equal totals keep
    the order of ``teams``.
    """
    lookup = PairLookup.coerce(pairs)
    scored = [m for m in matches if _is_scored(m, tournament.id)]

    ledger: dict[str, float] = defaultdict(float)
    for match in scored:
        for player_id, points in calculate_player_points_by_match(
            match, lookup, config
        ).items():
            ledger[player_id] += points

    totals = []
    for team in teams:
        if team.tournament_id != tournament.id:
            continue

        registration = tournament.registration_for(team.user_id)
        cutoff: Optional[datetime.datetime] = (
            registration.registered_at if registration else None
        )
        eligible = [
            m for m in scored if cutoff is None or m.completed_at >= cutoff  # type: ignore[operator]
        ]
        counted = select_counted_players(team, _players_in(eligible, lookup))

        totals.append(
            UserScoreTotal(
                user_id=team.user_id,
                total_points=sum(ledger.get(p, 0.0) for p in counted),
                counted_players=tuple(counted),
            )
        )

    totals.sort(key=lambda t: t.total_points, reverse=True)
    logger.debug(
        "Scored %d teams over %d matches for tournament %s",
        len(totals),
        len(scored),
        tournament.id,
    )
    return totals
