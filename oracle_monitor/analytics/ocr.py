"""
Chainlink OCR round analysis.
"""

from collections import Counter
from typing import Any, Dict, List, Optional

import numpy as np

from ..models import OcrRound

# Proxy round ids pack the phase into the top 16 bits of a uint80
PHASE_OFFSET = 64


def _missing_round_ids(round_ids: List[int]) -> List[int]:
    """Gaps between consecutive aggregator rounds, checked within each phase."""
    phases: Dict[int, List[int]] = {}
    for round_id in sorted(set(round_ids)):
        phases.setdefault(round_id >> PHASE_OFFSET, []).append(round_id)

    missing = []
    for ids in phases.values():
        for previous, current in zip(ids, ids[1:]):
            missing.extend(range(previous + 1, current))
    return missing


def analyze_ocr_rounds(rounds: List[OcrRound], operators: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Summarize a window of OCR rounds.

    Args:
        rounds: Rounds in any order
        operators: Expected observer set; defaults to every observer seen

    Returns:
        dict with duration stats, stale and missing rounds, answer changes,
        participation rate per operator and transmitter counts
    """
    if not rounds:
        return {
            "round_count": 0,
            "first_round_id": None,
            "latest_round_id": None,
            "duration": {"avg_seconds": 0.0, "max_seconds": 0.0, "min_seconds": 0.0},
            "stale_rounds": [],
            "missing_round_ids": [],
            "answer_changes_pct": [],
            "max_answer_change_pct": 0.0,
            "participation": {},
            "transmitters": {},
        }

    ordered = sorted(rounds, key=lambda r: r.round_id)
    durations = np.array([r.duration_seconds for r in ordered], dtype=float)

    missing = _missing_round_ids([r.round_id for r in ordered])

    changes = [
        (current.answer - previous.answer) / previous.answer * 100
        for previous, current in zip(ordered, ordered[1:])
        if previous.answer != 0
    ]

    if operators is None:
        operators = sorted({name for r in ordered for name in r.observers})
    participation = {
        name: sum(1 for r in ordered if name in r.observers) / len(ordered) * 100
        for name in operators
    }

    transmitters = Counter(r.transmitter for r in ordered if r.transmitter)

    return {
        "round_count": len(ordered),
        "first_round_id": ordered[0].round_id,
        "latest_round_id": ordered[-1].round_id,
        "duration": {
            "avg_seconds": float(durations.mean()),
            "max_seconds": float(durations.max()),
            "min_seconds": float(durations.min()),
        },
        "stale_rounds": [r.round_id for r in ordered if r.is_stale],
        "missing_round_ids": missing,
        "answer_changes_pct": changes,
        "max_answer_change_pct": max((abs(c) for c in changes), default=0.0),
        "participation": participation,
        "transmitters": dict(transmitters.most_common()),
    }
