"""Tests for the shared HTTP helpers."""

import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from common import http_client
from common.exceptions import TransferError
from common.logging_utils import safe_url
from constants import Constants


def _response(status=200, chunks=(b"payload",), text=""):
    response = MagicMock()
    response.status_code = status
    response.text = text
    response.iter_content.return_value = list(chunks)
    return response


class TestRobustGet:
    """Retry and timeout behaviour."""

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_returns_first_non_5xx_response(self, mock_get, mock_sleep):
        mock_get.side_effect = [_response(503), _response(404)]

        response = http_client.robust_get("https://repo/x.jar", context="central")

        assert response.status_code == 404
        assert mock_get.call_count == 2
        mock_sleep.assert_called_once_with(Constants.HTTP_RETRY_BASE_DELAY_SEC)
        assert mock_get.call_args.kwargs["timeout"] == Constants.REQUEST_TIMEOUT

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_retries_connection_errors_then_gives_up(self, mock_get, mock_sleep):
        mock_get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(TransferError, match="connection refused"):
            http_client.robust_get("https://repo/x.jar", context="central")

        assert mock_get.call_count == Constants.HTTP_RETRY_MAX
        assert mock_sleep.call_count == Constants.HTTP_RETRY_MAX - 1

    @patch("common.http_client.time.sleep")
    @patch("common.http_client.requests.get")
    def test_timeout_message(self, mock_get, _mock_sleep):
        mock_get.side_effect = requests.Timeout()
        with pytest.raises(TransferError, match="timed out"):
            http_client.robust_get("https://repo/x.jar", context="central")

    @patch("common.http_client.requests.get")
    def test_auth_is_forwarded(self, mock_get):
        mock_get.return_value = _response(200)
        http_client.robust_get("https://repo/x.jar", context="corp", auth=("u", "p"))
        assert mock_get.call_args.kwargs["auth"] == ("u", "p")


@patch("common.http_client.requests.get")
def test_get_text(mock_get):
    mock_get.return_value = _response(200, text="<metadata/>")
    assert http_client.get_text("https://repo/m.xml", context="central") == (200, "<metadata/>")
    mock_get.return_value.close.assert_called_once()


class TestDownloadToFile:

    @patch("common.http_client.requests.get")
    def test_writes_file_atomically(self, mock_get, tmp_path):
        mock_get.return_value = _response(200, chunks=(b"ab", b"", b"cd"))
        destination = str(tmp_path / "g" / "a" / "1" / "a-1.jar")

        assert http_client.download_to_file("https://repo/a-1.jar", destination, context="central") == 200

        with open(destination, "rb") as fh:
            assert fh.read() == b"abcd"
        assert not os.path.exists(destination + ".part")

    @patch("common.http_client.requests.get")
    def test_nothing_written_on_404(self, mock_get, tmp_path):
        mock_get.return_value = _response(404)
        destination = str(tmp_path / "a-1.jar")

        assert http_client.download_to_file("https://repo/a-1.jar", destination, context="central") == 404
        assert not os.path.exists(destination)

    @patch("common.http_client.requests.get")
    def test_interrupted_transfer_leaves_no_file(self, mock_get, tmp_path):
        response = _response(200)
        response.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("reset")
        mock_get.return_value = response
        destination = str(tmp_path / "a-1.jar")

        with pytest.raises(TransferError, match="interrupted"):
            http_client.download_to_file("https://repo/a-1.jar", destination, context="central")

        assert not os.path.exists(destination)
        assert not os.path.exists(destination + ".part")


def test_safe_url_strips_credentials_and_query():
    assert safe_url("https://user:pw@repo.example.org:8443/m2/a.jar?token=x#f") == (
        "https://repo.example.org:8443/m2/a.jar"
    )
