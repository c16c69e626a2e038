"""
Unit tests for OCR round analysis.
"""

import pytest
from datetime import timedelta

from oracle_monitor.analytics.ocr import PHASE_OFFSET, analyze_ocr_rounds
from oracle_monitor.models import OcrRound


class TestAnalyzeOcrRounds:

    @pytest.mark.unit
    @pytest.mark.smoke
    def test_round_window(self, ocr_rounds):
        result = analyze_ocr_rounds(list(reversed(ocr_rounds)))

        assert result["round_count"] == 4
        assert result["first_round_id"] == 100
        assert result["latest_round_id"] == 104
        assert result["missing_round_ids"] == [103]
        assert result["stale_rounds"] == [102]

    @pytest.mark.unit
    def test_durations(self, ocr_rounds):
        duration = analyze_ocr_rounds(ocr_rounds)["duration"]
        assert duration["avg_seconds"] == pytest.approx(30.0)
        assert duration["max_seconds"] == 90.0
        assert duration["min_seconds"] == 5.0

    @pytest.mark.unit
    def test_answer_changes(self, ocr_rounds):
        result = analyze_ocr_rounds(ocr_rounds)

        assert result["answer_changes_pct"][0] == pytest.approx(0.5)
        assert result["answer_changes_pct"][1] == 0.0
        assert result["max_answer_change_pct"] == pytest.approx(90 / 2010 * 100)

    @pytest.mark.unit
    def test_participation_from_observers(self, ocr_rounds):
        participation = analyze_ocr_rounds(ocr_rounds)["participation"]
        assert participation == {"alpha": 100.0, "beta": 75.0, "gamma": 25.0}

    @pytest.mark.unit
    def test_participation_for_expected_operators(self, ocr_rounds):
        participation = analyze_ocr_rounds(ocr_rounds, operators=["alpha", "delta"])["participation"]
        assert participation == {"alpha": 100.0, "delta": 0.0}

    @pytest.mark.unit
    def test_transmitter_counts(self, ocr_rounds):
        assert analyze_ocr_rounds(ocr_rounds)["transmitters"] == {"alpha": 3, "beta": 1}

    @pytest.mark.unit
    def test_no_rounds(self):
        result = analyze_ocr_rounds([])
        assert result["round_count"] == 0
        assert result["latest_round_id"] is None
        assert result["max_answer_change_pct"] == 0.0

    @pytest.mark.unit
    def test_gaps_checked_within_each_phase(self, now):
        def _round(round_id, minutes_ago):
            updated_at = now - timedelta(minutes=minutes_ago)
            return OcrRound(round_id, 2000.0, updated_at - timedelta(seconds=5), updated_at, round_id)

        phase_one = 1 << PHASE_OFFSET
        phase_two = 2 << PHASE_OFFSET
        rounds = [
            _round(phase_one + 5, 40),
            _round(phase_one + 7, 30),
            _round(phase_two + 1, 20),
            _round(phase_two + 2, 10),
        ]

        result = analyze_ocr_rounds(rounds)

        assert result["missing_round_ids"] == [phase_one + 6]
        assert result["first_round_id"] == phase_one + 5
        assert result["latest_round_id"] == phase_two + 2
