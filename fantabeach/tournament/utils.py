"""Utility functions for tournament management."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, Optional

from fantabeach import models
from fantabeach.errors import ValidationError

from .models import Match, PairLookup, SetScore

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def parse_set_scores(raw: Any) -> list[SetScore]:
    """Validate the ``setScores`` payload of a match completion."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError("setScores must be a non-empty list.")

    set_scores = []
    for index, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Set #{index} must be an object.")
        try:
            score = SetScore(
                set_number=int(item.get("setNumber", index)),
                pair_a_score=int(item["pairAScore"]),
                pair_b_score=int(item["pairBScore"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Set #{index} has an invalid score.") from e
        if score.pair_a_score < 0 or score.pair_b_score < 0:
            raise ValidationError(f"Set #{index}: scores cannot be negative.")
        set_scores.append(score)
    return set_scores


def parse_datetime(value: Optional[str]) -> Optional[datetime.datetime]:
    """Parse an ISO 8601 timestamp, assuming UTC when no offset is given."""
    if not value:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp: {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def fetch_tournament_matches(
    session: Session, tournament_id: str, for_update: bool = False
) -> list[models.Match]:
    """Fetch all match rows of the tournament, ordered by phase, round and slot."""
    query = (
        session.query(models.Match)
        .filter(models.Match.tournament_id == tournament_id)
        .order_by(models.Match.phase, models.Match.round, models.Match.slot)
    )
    if for_update:
        query = query.with_for_update()
    return query.all()


def load_engine_matches(session: Session, tournament_id: str) -> list[Match]:
    return [row.to_engine() for row in fetch_tournament_matches(session, tournament_id)]


def get_pair_lookup(session: Session, tournament_id: str) -> PairLookup:
    """Build the pair to players lookup from the tournament's entry list."""
    entries = (
        session.query(models.Entry)
        .filter(models.Entry.tournament_id == tournament_id)
        .all()
    )
    return PairLookup({e.pair_id: e.player_ids for e in entries})
