"""AI provider HTTP client with connection reuse and a per-request timeout."""

import logging
from typing import Optional, Dict, Any, Type

import requests

from core.exceptions import ProviderUnavailableError

logger = logging.getLogger(__name__)


class ProviderClient:
    """
    Client for the external matching/AI provider.

    Responsibilities:
    - Own a requests.Session for connection reuse
    - POST JSON payloads with a request timeout
    - Translate every transport, HTTP or decoding failure into a
      ProviderUnavailableError (or the subclass the caller asks for)

    No retries here; callers decide whether to retry or fall back.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        request_timeout_seconds: float = 10.0
    ):
        self.base_url = base_url.rstrip("/")
        self.request_timeout_seconds = request_timeout_seconds

        self.session = requests.Session()
        if api_key:
            self.session.headers["Authorization"] = f"Bearer {api_key}"

        logger.info(
            f"ProviderClient initialized: base_url={self.base_url}, "
            f"timeout={request_timeout_seconds}s"
        )

    def post_json(
        self,
        path: str,
        payload: Dict[str, Any],
        error_cls: Type[ProviderUnavailableError] = ProviderUnavailableError
    ) -> Dict[str, Any]:
        """POST payload and return the decoded JSON object.

        Raises:
            error_cls: On timeout, connection error, non-2xx status or a
                body that is not a JSON object.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(url, json=payload, timeout=self.request_timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except requests.Timeout as e:
            raise error_cls(f"Provider request to {path} timed out after {self.request_timeout_seconds}s") from e
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise error_cls(f"Provider returned HTTP {status} for {path}") from e
        except requests.RequestException as e:
            raise error_cls(f"Provider request to {path} failed: {e}") from e
        except ValueError as e:
            raise error_cls(f"Provider returned non-JSON body for {path}") from e

        if not isinstance(data, dict):
            raise error_cls(f"Provider returned {type(data).__name__} instead of an object for {path}")

        return data

    def close(self):
        """Close the session and release resources."""
        self.session.close()
        logger.info("ProviderClient session closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
