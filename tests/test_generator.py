"""tests/test_generator.py"""
from collections import Counter
from datetime import date, timedelta
from unittest.mock import patch

import numpy as np
import pytest
from scipy.stats import chisquare

from smartpick.models.era import EraTable
from smartpick.models.pattern_filter import (
    has_consecutive_run,
    is_arithmetic_sequence,
    is_birthday_heavy,
    is_tightly_clustered,
    looks_too_common,
    ticket_hints,
)
from smartpick.models.statistical.digits import compute_digit_stats
from smartpick.models.statistical.frequency_analyzer import compute_stats
from smartpick.models.statistical.k_of_n import compute_k_of_n_stats
from smartpick.models.ticket_generator import (
    build_weights,
    generate_digit_ticket,
    generate_k_of_n_ticket,
    generate_ticket,
    generate_tickets,
    weighted_sample_distinct,
)
from smartpick.models.types import DigitRecord, DrawRecord, GenerateOptions, KOfNRecord, Mode


TABLE = EraTable.from_mapping({
    "test_lotto": [
        {"start": "2015-10-07", "label": "5/69 + 1/26", "main_max": 69, "main_pick": 5, "special_max": 26},
    ],
    "test_fantasy5": [
        {"start": "2000-01-01", "label": "5/39", "main_max": 39, "main_pick": 5},
    ],
    "test_tiny": [
        {"start": "2000-01-01", "label": "3/3", "main_max": 3, "main_pick": 3},
    ],
})
AS_OF = date(2024, 1, 1)
LOTTO = TABLE.config_for("test_lotto", AS_OF)
FANTASY = TABLE.config_for("test_fantasy5", AS_OF)

# strongly skewed toward 1..5 so any bias would show up
SKEWED = [DrawRecord(date(2020, 1, 1) + timedelta(days=i), (1, 2, 3, 4, 5 + i % 30), 1) for i in range(40)]


class TestBuildWeights:
    def setup_method(self):
        self.values = list(range(1, 11))
        self.counts = {v: (10 if v == 1 else 1) for v in self.values}

    def test_alpha_zero_is_exactly_uniform(self):
        for mode in (Mode.HOT, Mode.COLD):
            w = build_weights(self.values, self.counts, mode, 0.0)
            assert np.array_equal(w, np.full(10, 0.1))

    def test_hot_favours_frequent(self):
        w = build_weights(self.values, self.counts, Mode.HOT, 0.7)
        assert np.isclose(w.sum(), 1.0)
        assert w[0] == w.max()

    def test_cold_favours_rare(self):
        w = build_weights(self.values, self.counts, Mode.COLD, 0.7)
        assert np.isclose(w.sum(), 1.0)
        assert w[0] == w.min()

    def test_no_history_collapses_to_uniform(self):
        zeros = {v: 0 for v in self.values}
        for mode in (Mode.HOT, Mode.COLD):
            assert np.allclose(build_weights(self.values, zeros, mode, 1.0), 0.1)

    def test_alpha_clamped(self):
        w = build_weights(self.values, self.counts, Mode.HOT, 3.0)
        assert np.allclose(w, build_weights(self.values, self.counts, Mode.HOT, 1.0))


class TestWeightedSampleDistinct:
    def setup_method(self):
        self.rng = np.random.default_rng(42)

    def test_distinct_and_sorted(self):
        values = list(range(1, 70))
        for _ in range(50):
            picks = weighted_sample_distinct(5, values, np.full(69, 1 / 69), self.rng)
            assert len(set(picks)) == 5
            assert picks == sorted(picks)
            assert all(1 <= p <= 69 for p in picks)

    def test_k_larger_than_domain(self):
        assert weighted_sample_distinct(10, [1, 2, 3], np.ones(3), self.rng) == [1, 2, 3]

    def test_zero_mass_falls_back_to_uniform(self):
        picks = weighted_sample_distinct(3, [1, 2, 3, 4], np.array([1.0, 0.0, 0.0, 0.0]), self.rng)
        assert len(picks) == 3
        assert 1 in picks

    def test_nan_weights_ignored(self):
        picks = weighted_sample_distinct(2, [1, 2, 3], np.array([np.nan, 1.0, 1.0]), self.rng)
        assert picks == [2, 3]


class TestGenerateTicket:
    def setup_method(self):
        self.rng = np.random.default_rng(2024)

    def test_ticket_shape(self):
        opts = GenerateOptions(Mode.HOT, Mode.COLD, 0.7, 0.6)
        for _ in range(100):
            t = generate_ticket(SKEWED, "test_lotto", opts, era_cfg=LOTTO, rng=self.rng)
            assert len(t.mains) == 5
            assert len(set(t.mains)) == 5
            assert list(t.mains) == sorted(t.mains)
            assert all(1 <= n <= 69 for n in t.mains)
            assert 1 <= t.special <= 26

    def test_no_special_game(self):
        t = generate_ticket([], "test_fantasy5", era_cfg=FANTASY, rng=self.rng)
        assert t.special is None
        assert "special" not in t.to_dict()

    def test_empty_history_still_generates(self):
        t = generate_ticket([], "test_lotto", GenerateOptions(alpha_main=0.9), era_cfg=LOTTO, rng=self.rng)
        assert len(t.mains) == 5

    def test_era_from_table(self):
        t = generate_ticket([], "test_lotto", as_of=AS_OF, table=TABLE, rng=self.rng)
        assert 1 <= t.special <= 26

    def test_non_lotto_game_rejected(self):
        with pytest.raises(ValueError, match="generate_digit_ticket"):
            generate_ticket([], "ny_numbers", as_of=AS_OF, rng=self.rng)
        with pytest.raises(ValueError, match="generate_k_of_n_ticket"):
            generate_ticket([], "ny_pick10", as_of=AS_OF, rng=self.rng)

    def test_avoid_common_never_returns_flagged(self):
        opts = GenerateOptions(Mode.HOT, Mode.HOT, 0.5, 0.0, avoid_common=True)
        tickets = [
            generate_ticket([], "test_fantasy5", opts, era_cfg=FANTASY, rng=self.rng, max_attempts=50)
            for _ in range(50)
        ]
        returned = [t for t in tickets if t is not None]
        assert len(returned) >= 45
        for t in returned:
            assert not looks_too_common(t.mains, FANTASY.main_max)

    @patch("smartpick.models.ticket_generator.looks_too_common", return_value=True)
    def test_all_candidates_flagged_returns_none(self, mock_common):
        opts = GenerateOptions(avoid_common=True)
        t = generate_ticket([], "test_lotto", opts, era_cfg=LOTTO, rng=self.rng, max_attempts=7)
        assert t is None
        assert mock_common.call_count == 7

    def test_alpha_zero_is_uniform_regardless_of_mode(self):
        rng = np.random.default_rng(12345)
        for mode in (Mode.HOT, Mode.COLD):
            opts = GenerateOptions(mode_main=mode, alpha_main=0.0)
            stats = compute_stats(SKEWED, "test_fantasy5", era_cfg=FANTASY)
            hits = Counter()
            for _ in range(3000):
                t = generate_ticket(SKEWED, "test_fantasy5", opts, era_cfg=FANTASY, rng=rng, stats=stats)
                hits.update(t.mains)
            observed = [hits[n] for n in range(1, 40)]
            _, p_value = chisquare(observed)
            assert p_value > 0.001


class TestGenerateTickets:
    def setup_method(self):
        self.rng = np.random.default_rng(7)

    def test_distinct(self):
        tickets = generate_tickets(SKEWED, "test_lotto", 20, era_cfg=LOTTO, rng=self.rng)
        assert len(tickets) == 20
        assert len(set(tickets)) == 20

    def test_exhaustion_returns_short_list(self):
        tickets = generate_tickets([], "test_tiny", 5, as_of=AS_OF, table=TABLE, rng=self.rng)
        assert [t.mains for t in tickets] == [(1, 2, 3)]

    def test_explicit_budget(self):
        tickets = generate_tickets([], "test_lotto", 10, era_cfg=LOTTO, rng=self.rng, max_attempts=3)
        assert len(tickets) <= 3

    def test_zero_count(self):
        assert generate_tickets(SKEWED, "test_lotto", 0, era_cfg=LOTTO) == []


class TestOtherGameTickets:
    def setup_method(self):
        self.rng = np.random.default_rng(99)

    def test_digit_ticket(self):
        stats = compute_digit_stats([DigitRecord(date(2024, 1, 1), (7, 7, 1))], 3)
        for _ in range(50):
            t = generate_digit_ticket(stats, Mode.HOT, 0.6, self.rng)
            assert len(t) == 3
            assert all(0 <= d <= 9 for d in t)

    def test_k_of_n_ticket_spots(self):
        stats = compute_k_of_n_stats([KOfNRecord(date(2024, 1, 1), tuple(range(1, 21)))], 20, 80)
        t = generate_k_of_n_ticket(stats, Mode.COLD, 0.5, self.rng, spots=4)
        assert len(set(t)) == 4
        assert all(1 <= v <= 80 for v in t)
        assert len(generate_k_of_n_ticket(stats, rng=self.rng)) == 20


class TestPatternFilter:
    def test_three_consecutive_rejected(self):
        assert looks_too_common([1, 2, 3, 10, 20], 69)
        assert has_consecutive_run([20, 3, 1, 10, 2])

    def test_birthday_heavy(self):
        assert is_birthday_heavy([3, 12, 19, 27, 60])
        assert not is_birthday_heavy([3, 12, 19, 47, 60])

    def test_arithmetic_sequence(self):
        assert is_arithmetic_sequence([10, 20, 30, 40, 50])
        assert not is_arithmetic_sequence([10, 20, 30, 40, 51])
        assert not is_arithmetic_sequence([10, 20])

    def test_tight_cluster(self):
        # 69 // 7 == 9
        assert is_tightly_clustered([40, 42, 44, 47, 49], 69)
        assert not is_tightly_clustered([40, 42, 44, 47, 50], 69)

    def test_ordinary_ticket_passes(self):
        assert not looks_too_common([4, 17, 33, 48, 62], 69)

    def test_does_not_mutate_input(self):
        mains = [20, 3, 1, 10, 2]
        looks_too_common(mains, 69)
        assert mains == [20, 3, 1, 10, 2]

    def test_single_pick_never_flagged(self):
        assert not looks_too_common([7], 15)

    def test_hints(self):
        stats = compute_stats([], "test_lotto", era_cfg=LOTTO)
        assert ticket_hints([4, 17, 33, 48, 62], 5, stats) == ["Balanced"]
        assert ticket_hints([1, 2, 3, 4, 60], 5, stats)[:2] == ["4-in-a-row", "Birthday-heavy"]
