"""
Tests for HttpProber with requests mocked out.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from device_locator.probers.http_prober import HttpProber
from device_locator.utils.error_handler import ErrorHandler, ProbeError


def response(status_code):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.__enter__.return_value = mock_response
    return mock_response


@pytest.fixture
def prober():
    return HttpProber(error_handler=ErrorHandler())


class TestHttpProber:
    """Only HTTP 200 counts as found"""

    @patch("device_locator.probers.http_prober.requests.get")
    def test_ok_is_found(self, mock_get, prober):
        mock_get.return_value = response(200)

        assert prober.probe("192.168.1.37", 8082, 10.0) is True
        mock_get.assert_called_once_with(
            "http://192.168.1.37:8082/", timeout=10.0, allow_redirects=False, stream=True
        )

    @pytest.mark.parametrize("status", [204, 302, 404, 500])
    @patch("device_locator.probers.http_prober.requests.get")
    def test_other_status_is_not_found(self, mock_get, status, prober):
        mock_get.return_value = response(status)
        assert prober.probe("192.168.1.37", 8082, 1.0) is False

    @pytest.mark.parametrize("error", [
        requests.exceptions.ConnectTimeout("slow"),
        requests.exceptions.ReadTimeout("slow"),
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.TooManyRedirects("loop"),
    ])
    @patch("device_locator.probers.http_prober.requests.get")
    def test_transport_errors_raise_probe_error(self, mock_get, error, prober):
        mock_get.side_effect = error

        with pytest.raises(ProbeError) as exc_info:
            prober.probe("192.168.1.37", 8082, 1.0)
        assert exc_info.value.address == "192.168.1.37"

    @patch("device_locator.probers.http_prober.requests.get")
    def test_run_never_raises(self, mock_get):
        handler = ErrorHandler()
        prober = HttpProber(error_handler=handler)
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        outcome = prober.run("192.168.1.37", 8082, 1.0)

        assert outcome.success is False
        assert "Connection failed" in outcome.error
        assert handler.get_error_statistics() == {"probe_failure": 1}

    @patch("device_locator.probers.http_prober.requests.get")
    def test_run_reports_success(self, mock_get, prober):
        mock_get.return_value = response(200)

        outcome = prober.run("192.168.1.37", 8082, 1.0)

        assert outcome.success is True
        assert outcome.error is None
        assert outcome.status_code == 200
        assert outcome.duration >= 0

    @patch("device_locator.probers.http_prober.requests.get")
    def test_run_keeps_status_of_a_miss(self, mock_get, prober):
        """A 404 is a miss that still records what the host answered"""
        mock_get.return_value = response(404)

        outcome = prober.run("192.168.1.37", 8082, 1.0)

        assert outcome.success is False
        assert outcome.status_code == 404
        assert outcome.error == "HTTP 404"

    @patch("device_locator.probers.http_prober.requests.get")
    def test_refused_connection_has_no_status(self, mock_get, prober):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        outcome = prober.run("192.168.1.37", 8082, 1.0)

        assert outcome.success is False
        assert outcome.status_code is None

    def test_custom_path(self):
        assert HttpProber(path="status").build_url("10.0.0.1", 80) == "http://10.0.0.1:80/status"
