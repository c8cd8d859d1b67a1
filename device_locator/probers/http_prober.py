"""
HTTP liveness prober.

A candidate hosts the service when ``GET http://<address>:<port>/`` answers
with status 200 inside the timeout. Anything else is a miss.
"""

from typing import Optional, Tuple

import requests

from .base_prober import BaseProber
from ..utils.logger import Logger
from ..utils.error_handler import ErrorHandler, ProbeError

SUCCESS_STATUS = 200


class HttpProber(BaseProber):
    """Probes candidates with a plain HTTP GET using requests."""

    def __init__(self, path: str = "/", logger: Optional[Logger] = None,
                 error_handler: Optional[ErrorHandler] = None):
        """
        Initialize the HTTP prober.

        Args:
            path: Request path appended to the candidate URL
            logger: Logger instance for probe diagnostics
            error_handler: ErrorHandler that absorbs probe failures
        """
        super().__init__(logger, error_handler)
        self.path = path if path.startswith("/") else f"/{path}"

    def build_url(self, address: str, port: int) -> str:
        return f"http://{address}:{port}{self.path}"

    def probe(self, address: str, port: int, timeout: float) -> bool:
        """Issue one GET and report whether it returned 200."""
        return self.check(address, port, timeout)[0]

    def check(self, address: str, port: int, timeout: float) -> Tuple[bool, Optional[int]]:
        status_code = self.fetch_status(address, port, timeout)
        if status_code != SUCCESS_STATUS:
            self.logger.debug(f"{self.build_url(address, port)} answered HTTP {status_code}")
            return False, status_code
        return True, status_code

    def fetch_status(self, address: str, port: int, timeout: float) -> int:
        """
        Issue one GET and return the HTTP status code.

        Raises:
            ProbeError: On timeout, refused connection or any other
                transport failure
        """
        url = self.build_url(address, port)

        try:
            # stream=True stops requests from downloading the page body
            with requests.get(url, timeout=timeout, allow_redirects=False, stream=True) as response:
                status_code = response.status_code
        except requests.exceptions.ConnectTimeout:
            raise ProbeError(f"Connection timeout to {address}:{port}", address)
        except requests.exceptions.ReadTimeout:
            raise ProbeError(f"Request timeout to {address}:{port}", address)
        except requests.exceptions.ConnectionError as e:
            raise ProbeError(f"Connection failed to {address}:{port}: {e}", address)
        except requests.exceptions.RequestException as e:
            raise ProbeError(f"Request failed: {e}", address)

        return status_code
