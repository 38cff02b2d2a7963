"""Derive the display bracket of a tournament from its matches."""

from __future__ import annotations

import datetime
from collections import defaultdict
from typing import Iterable, Optional

from .models import (
    KNOCKOUT_PHASES,
    BracketData,
    BracketEdge,
    BracketNode,
    Match,
    Phase,
    utcnow,
)


def _node_for(match: Match) -> BracketNode:
    return BracketNode(
        id=f"node_{match.id}",
        tournament_id=match.tournament_id,
        phase=match.phase,
        round=match.round,
        slot=match.slot,
        match_id=match.id,
        label=f"{match.phase.value} R{match.round} · M{match.slot}",
        pair_a_id=match.pair_a_id,
        pair_b_id=match.pair_b_id,
        winner_pair_id=match.winner_pair_id,
    )


def _connect_rounds(nodes: list[BracketNode]) -> list[BracketEdge]:
    """Link every node of a round to node ``index // 2`` of the next round."""
    by_round: dict[int, list[BracketNode]] = defaultdict(list)
    for node in nodes:
        by_round[node.round].append(node)

    edges = []
    rounds = sorted(by_round)
    for current, following in zip(rounds, rounds[1:]):
        from_nodes = sorted(by_round[current], key=lambda n: n.slot)
        to_nodes = sorted(by_round[following], key=lambda n: n.slot)
        for index, source in enumerate(from_nodes):
            target_index = index // 2
            if target_index >= len(to_nodes):
                continue
            target = to_nodes[target_index]
            edges.append(
                BracketEdge(
                    id=f"edge_{source.id}_{target.id}",
                    from_node_id=source.id,
                    to_node_id=target.id,
                )
            )
    return edges


def build_bracket(
    tournament_id: str,
    matches: Iterable[Match],
    now: Optional[datetime.datetime] = None,
) -> BracketData:
    """Project the tournament's matches into bracket nodes and winner edges.

    Only knockout phases are connected; pool matches get nodes but no edges.
    The result is recomputed from scratch on every call. Missing rounds only
    produce fewer nodes and edges.
    """
    tournament_matches = sorted(
        (m for m in matches if m.tournament_id == tournament_id),
        key=lambda m: (m.round, m.slot),
    )
    nodes = [_node_for(m) for m in tournament_matches]

    by_phase: dict[Phase, list[BracketNode]] = {}
    for node in nodes:
        by_phase.setdefault(node.phase, []).append(node)

    edges: list[BracketEdge] = []
    for phase, phase_nodes in by_phase.items():
        if phase not in KNOCKOUT_PHASES:
            continue
        edges.extend(_connect_rounds(phase_nodes))

    return BracketData(
        tournament_id=tournament_id,
        nodes=tuple(nodes),
        edges=tuple(edges),
        updated_at=now or utcnow(),
    )
