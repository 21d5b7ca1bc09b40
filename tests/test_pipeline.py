"""tests/test_pipeline.py"""
import threading
from datetime import date, timedelta
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from smartpick.models.errors import TaskCancelled
from smartpick.models.types import DigitRecord, DrawRecord, KOfNRecord
from smartpick.pipeline.ticket_service import build_pick_report
from smartpick.pipeline.worker_bridge import CancelToken, WorkerBridge

AS_OF = date(2024, 6, 1)

POWERBALL = [
    DrawRecord(date(2024, 1, 1) + timedelta(days=3 * i), mains, sp)
    for i, (mains, sp) in enumerate([
        ((5, 14, 22, 33, 41), 3),
        ((3, 11, 19, 28, 37), 7),
        ((7, 14, 24, 35, 63), 3),
        ((2, 9, 22, 30, 41), 12),
        ((8, 17, 25, 36, 69), 26),
    ])
]


class TestWorkerBridge:
    def setup_method(self):
        self.release = threading.Event()
        self.bridge = WorkerBridge(
            tasks={
                "add": lambda a, b: a + b,
                "blocked": lambda: self.release.wait(5) and "done",
                "boom": self._boom,
            },
            max_workers=2,
        )

    def teardown_method(self):
        self.release.set()
        self.bridge.shutdown()

    @staticmethod
    def _boom():
        raise ValueError("bad input")

    def test_result_delivered(self):
        future = self.bridge.run_task("add", 1, b=2)
        assert future.result(timeout=5) == 3
        assert self.bridge.pending_count == 0

    def test_request_ids_unique(self):
        futures = [self.bridge.run_task("add", i, 1) for i in range(20)]
        assert len({f.request_id for f in futures}) == 20
        assert sorted(f.result(timeout=5) for f in futures) == list(range(1, 21))

    def test_unknown_task(self):
        with pytest.raises(ValueError):
            self.bridge.run_task("nope")

    def test_error_propagates(self):
        future = self.bridge.run_task("boom")
        with pytest.raises(ValueError, match="bad input"):
            future.result(timeout=5)

    def test_cancel_drops_late_reply(self):
        token = CancelToken()
        future = self.bridge.run_task("blocked", token=token)
        token.cancel()
        with pytest.raises(TaskCancelled):
            future.result(timeout=1)
        assert self.bridge.pending_count == 0

        self.release.set()
        # the worker still finishes; its reply goes nowhere
        with pytest.raises(TaskCancelled):
            future.result(timeout=1)

    def test_cancelled_token_never_dispatches(self):
        fn = MagicMock(return_value=1)
        bridge = WorkerBridge(tasks={"fn": fn})
        token = CancelToken()
        token.cancel()
        future = bridge.run_task("fn", token=token)
        with pytest.raises(TaskCancelled):
            future.result(timeout=1)
        bridge.shutdown()
        fn.assert_not_called()

    def test_cancel_after_completion_is_noop(self):
        token = CancelToken()
        future = self.bridge.run_task("add", 2, 2, token=token)
        assert future.result(timeout=5) == 4
        token.cancel()
        assert future.result() == 4

    def test_future_cancel_not_supported(self):
        future = self.bridge.run_task("blocked")
        assert future.cancel() is False

    def test_shutdown_fails_pending(self):
        bridge = WorkerBridge(tasks={"blocked": lambda: self.release.wait(5)}, max_workers=1)
        first = bridge.run_task("blocked")
        queued = bridge.run_task("blocked")
        bridge.shutdown(wait=False)
        with pytest.raises(TaskCancelled):
            queued.result(timeout=1)
        self.release.set()
        with pytest.raises(TaskCancelled):
            first.result(timeout=5)

    def test_run_after_shutdown_leaves_nothing_pending(self):
        bridge = WorkerBridge(tasks={"add": lambda a, b: a + b})
        bridge.shutdown()
        for _ in range(3):
            with pytest.raises(RuntimeError):
                bridge.run_task("add", 1, 2)
        assert bridge.pending_count == 0


class TestDefaultTasks:
    def test_engine_calls_run_in_background(self):
        with WorkerBridge() as bridge:
            stats = bridge.run_task("compute_stats", POWERBALL, "multi_powerball", as_of=AS_OF).result(timeout=10)
            assert stats.draws == 5
            analysis = bridge.run_task("analyze_game", POWERBALL, "multi_powerball", as_of=AS_OF).result(timeout=10)
            assert analysis.rec_main.alpha > 0

    def test_concurrent_calls_with_own_rng_are_reproducible(self):
        with WorkerBridge(max_workers=4) as bridge:
            futures = [
                bridge.run_task(
                    "generate_tickets", POWERBALL, "multi_powerball", 5,
                    rng=np.random.default_rng(11), as_of=AS_OF,
                )
                for _ in range(4)
            ]
            results = [f.result(timeout=10) for f in futures]
        assert all(r == results[0] for r in results)


class TestTicketService:
    def test_lotto_report(self):
        report = build_pick_report(POWERBALL, "multi_powerball", count=4, as_of=AS_OF, rng=np.random.default_rng(1))
        assert report["success"] is True
        assert report["kind"] == "lotto"
        assert report["era"]["main_max"] == 69
        assert report["jackpot_odds"] == 292_201_338
        assert report["analysis"]["draws"] == 5
        assert report["patterns"]["combos"]["distinct_seen"] == 5
        assert len(report["patterns"]["special_cycles"]) == 26
        assert 0 < len(report["tickets"]) <= 4
        for t in report["tickets"]:
            assert len(t["mains"]) == 5
            assert 1 <= t["special"] <= 26
            assert t["hints"]

    def test_digit_report(self):
        records = [DigitRecord(date(2024, 1, 1) + timedelta(days=i), (i % 10, 3, 7)) for i in range(30)]
        report = build_pick_report(records, "ny_numbers", count=3, as_of=AS_OF, rng=np.random.default_rng(2))
        assert report["kind"] == "digits"
        assert report["jackpot_odds"] == 1000
        assert set(report["overdue"]) == set(range(10))
        assert report["overdue"][3] == 0
        assert len(report["tickets"]) == 3
        for t in report["tickets"]:
            assert len(t["digits"]) == 3
            assert "box" in t and "straight" in t

    def test_quick_draw_report(self):
        records = [KOfNRecord(date(2024, 1, 1), tuple(range(1, 21)))]
        report = build_pick_report(records, "ny_quick_draw", count=2, spots=5, as_of=AS_OF, rng=np.random.default_rng(3))
        assert report["kind"] == "k_of_n"
        assert report["jackpot_odds"] == 1551
        assert all(len(t["values"]) == 5 for t in report["tickets"])

    def test_cash_pop_report_has_last_seen(self):
        records = [KOfNRecord(date(2024, 1, 1) + timedelta(days=i), (i % 15 + 1,)) for i in range(10)]
        report = build_pick_report(records, "fl_cashpop", count=2, as_of=AS_OF, rng=np.random.default_rng(4))
        assert report["jackpot_odds"] == 15
        assert report["last_seen"][10] == 0
        assert report["last_seen"][15] is None
        assert all(len(t["values"]) == 1 for t in report["tickets"])

    @patch("smartpick.pipeline.ticket_service.generate_tickets", return_value=[])
    def test_exhaustion_is_not_an_error(self, mock_generate):
        report = build_pick_report([], "multi_powerball", count=3, as_of=AS_OF)
        assert report["success"] is True
        assert report["tickets"] == []
        mock_generate.assert_called_once()
