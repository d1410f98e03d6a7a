"""
Tests for g_flite/distributed/poller.py

Uses the in-process StubComputeClient from conftest.py.
"""

import threading
from unittest.mock import MagicMock, patch

import pytest

from g_flite.core.exceptions import PollCancelledError, PollError, TaskFailedError
from g_flite.distributed.client import TaskPhase, TaskStatus
from g_flite.distributed.poller import ProgressPoller


def make_poller(client, total_units=10, **kwargs):
    bar = MagicMock()
    kwargs.setdefault("interval", 0)
    poller = ProgressPoller(client, client.handle, total_units, progress_bar=bar, **kwargs)
    return poller, bar


def increments(bar):
    return [c.args[0] for c in bar.update.call_args_list]


# ============================================================================
# Progress display
# ============================================================================

class TestProgress:
    """Test the progress bar increments."""

    def test_monotonic_sequence(self, stub_client, make_status):
        client = stub_client([
            make_status(0.0),
            make_status(0.3),
            make_status(0.3),
            make_status(0.7),
            make_status(1.0, TaskPhase.FINISHED),
        ])
        poller, bar = make_poller(client, total_units=10)

        result = poller.run()

        assert result.phase is TaskPhase.FINISHED
        assert increments(bar) == [3, 4, 3]
        assert client.queries == 5
        assert client.script == []

    def test_rounding_half_away_from_zero(self, stub_client, make_status):
        client = stub_client([
            make_status(0.5),
            make_status(1.0, TaskPhase.FINISHED),
        ])
        poller, bar = make_poller(client, total_units=3)

        poller.run()

        # 0.5 * 3 = 1.5 -> 2
        assert increments(bar) == [2, 2]

    def test_small_steps_not_sent(self, stub_client, make_status):
        client = stub_client([
            make_status(0.1),
            make_status(1.0, TaskPhase.FINISHED),
        ])
        poller, bar = make_poller(client, total_units=2)

        poller.run()

        assert increments(bar) == [2]
        assert poller.last_progress == 1.0

    def test_finished_on_first_poll(self, stub_client, make_status):
        client = stub_client([make_status(1.0, TaskPhase.FINISHED)])
        poller, bar = make_poller(client, total_units=6)

        poller.run()

        assert increments(bar) == [6]
        assert poller.polls == 1

    def test_regression_is_tolerated(self, stub_client, make_status):
        client = stub_client([
            make_status(0.6),
            make_status(0.4),
            make_status(1.0, TaskPhase.FINISHED),
        ])
        poller, bar = make_poller(client, total_units=10)

        poller.run()

        assert increments(bar) == [6, -2, 6]

    @patch("g_flite.distributed.poller.tqdm")
    def test_default_bar_is_tqdm(self, mock_tqdm, stub_client, make_status):
        client = stub_client([make_status(1.0, TaskPhase.FINISHED)])

        ProgressPoller(client, client.handle, 4, interval=0).run()

        mock_tqdm.assert_called_once_with(total=4, unit="subtask", disable=False)
        mock_tqdm.return_value.update.assert_called_once_with(4)
        mock_tqdm.return_value.close.assert_called_once()


# ============================================================================
# Terminal phases
# ============================================================================

class TestTerminalPhases:
    """Test failure terminals end the loop."""

    @pytest.mark.parametrize("phase", [
        TaskPhase.ERROR_CREATING,
        TaskPhase.FAILED,
        TaskPhase.ABORTED,
        TaskPhase.TIMEOUT,
    ])
    def test_failed_phase_raises(self, stub_client, make_status, phase):
        client = stub_client([make_status(0.2), make_status(0.4, phase)])
        poller, _ = make_poller(client)

        with pytest.raises(TaskFailedError) as exc_info:
            poller.run()

        assert exc_info.value.phase is phase
        assert exc_info.value.handle == client.handle
        assert client.queries == 2

    def test_unknown_phase_keeps_polling(self, stub_client, make_status):
        client = stub_client([
            make_status(0.2, TaskPhase.UNKNOWN),
            make_status(1.0, TaskPhase.FINISHED),
        ])
        poller, _ = make_poller(client)

        assert poller.run().phase is TaskPhase.FINISHED


# ============================================================================
# Retries, cancellation, deadline
# ============================================================================

class TestRetries:
    """Test bounded retry of failed status queries."""

    def test_transient_errors_recovered(self, stub_client, make_status):
        client = stub_client([
            PollError("blip"),
            make_status(0.5),
            PollError("blip"),
            PollError("blip"),
            make_status(1.0, TaskPhase.FINISHED),
        ])
        poller, bar = make_poller(client, max_retries=2)

        poller.run()

        assert increments(bar) == [5, 5]
        assert poller.polls == 2

    def test_retries_exhausted(self, stub_client):
        client = stub_client([PollError("down")] * 4)
        poller, _ = make_poller(client, max_retries=3)

        with pytest.raises(PollError):
            poller.run()

        assert client.queries == 4

    def test_non_finite_progress_is_retried_then_raised(self, stub_client):
        class ReplyClient(stub_client):
            def get_status(self, handle):
                return TaskStatus.from_reply(super().get_status(handle))

        client = ReplyClient([{"progress": "nan", "status": "Computing"}] * 2)
        poller, bar = make_poller(client, max_retries=1)

        with pytest.raises(PollError):
            poller.run()

        assert client.queries == 2
        bar.update.assert_not_called()

    def test_no_retries(self, stub_client):
        client = stub_client([PollError("down")])
        poller, _ = make_poller(client, max_retries=0)

        with pytest.raises(PollError):
            poller.run()


class TestCancellation:
    """Test the cancel event and the deadline."""

    def test_cancelled_before_start(self, stub_client, make_status):
        client = stub_client([make_status(1.0, TaskPhase.FINISHED)])
        event = threading.Event()
        event.set()
        poller, _ = make_poller(client, cancel_event=event)

        with pytest.raises(PollCancelledError):
            poller.run()
        assert client.queries == 0

    def test_cancelled_while_waiting(self, stub_client, make_status):
        event = threading.Event()

        class CancellingClient(stub_client):
            def get_status(self, handle):
                result = super().get_status(handle)
                event.set()
                return result

        client = CancellingClient([make_status(0.1)] * 3)
        poller, _ = make_poller(client, cancel_event=event, interval=60)

        with pytest.raises(PollCancelledError):
            poller.run()
        assert client.queries == 1

    def test_deadline(self, stub_client, make_status):
        client = stub_client([make_status(0.1)] * 100)
        poller, _ = make_poller(client, interval=0.01, timeout=0.05)

        with pytest.raises(PollCancelledError):
            poller.run()
        assert client.queries < 100

    @patch("g_flite.distributed.poller.tqdm")
    def test_bar_hidden(self, mock_tqdm, stub_client, make_status):
        client = stub_client([make_status(1.0, TaskPhase.FINISHED)])

        ProgressPoller(client, client.handle, 3, interval=0, show_progress=False).run()

        mock_tqdm.assert_called_once_with(total=3, unit="subtask", disable=True)

    @patch("g_flite.distributed.poller.tqdm")
    def test_bar_closed_on_error(self, mock_tqdm, stub_client, make_status):
        client = stub_client([make_status(0.0, TaskPhase.ABORTED)])

        with pytest.raises(TaskFailedError):
            ProgressPoller(client, client.handle, 2, interval=0).run()

        mock_tqdm.return_value.close.assert_called_once()
