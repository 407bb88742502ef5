import signal
from unittest import mock

from grz_hasher.cancellation import CANCELLED, DEADLINE_EXCEEDED, CancelToken, SignalManager
from grz_hasher.constants import EXIT_INTERRUPTED


def test_token_cancel():
    token = CancelToken()
    assert not token.cancelled
    assert token.reason is None
    assert token.deadline is None
    assert token.remaining() is None

    token.cancel()
    assert token.cancelled
    assert token.reason == CANCELLED


def test_token_deadline():
    token = CancelToken(timeout=0)
    assert token.cancelled
    assert token.reason == DEADLINE_EXCEEDED
    assert token.remaining() == 0.0


def test_token_deadline_in_future():
    token = CancelToken(timeout=3600)
    assert not token.cancelled
    assert 0 < token.remaining() <= 3600


def test_explicit_cancel_wins_over_deadline():
    token = CancelToken(timeout=0)
    token.cancel()
    assert token.reason == CANCELLED


def test_signal_manager_cancels_on_first_interrupt():
    token = CancelToken()
    original = signal.getsignal(signal.SIGINT)

    with SignalManager(token):
        handler = signal.getsignal(signal.SIGINT)
        assert handler is not original
        handler(signal.SIGINT, None)
        assert token.reason == CANCELLED

    assert signal.getsignal(signal.SIGINT) is original


def test_signal_manager_exits_on_second_interrupt():
    token = CancelToken()
    with mock.patch("grz_hasher.cancellation.os._exit") as mock_exit, SignalManager(token):
        handler = signal.getsignal(signal.SIGINT)
        handler(signal.SIGINT, None)
        mock_exit.assert_not_called()
        handler(signal.SIGINT, None)
        mock_exit.assert_called_once_with(EXIT_INTERRUPTED)
