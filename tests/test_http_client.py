"""Tests for the pooled HTTP client lifecycle."""

from unittest.mock import MagicMock, patch

import pytest

from core import http_client


@pytest.fixture(autouse=True)
def fresh_client():
    http_client._shared_client = None
    yield
    http_client._shared_client = None


def test_shared_client_is_reused_until_closed():
    with patch.object(http_client.httpx, "Client", side_effect=lambda **kw: MagicMock()) as factory:
        first = http_client.get_shared_client()
        assert http_client.get_shared_client() is first

        http_client.close_shared_client()
        first.close.assert_called_once_with()

        second = http_client.get_shared_client()
    assert second is not first
    assert factory.call_count == 2
    assert factory.call_args.kwargs["http2"] is True


def test_close_without_client_is_noop():
    http_client.close_shared_client()
    assert http_client._shared_client is None
