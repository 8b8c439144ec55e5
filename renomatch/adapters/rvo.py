from __future__ import annotations

import json
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from renomatch import config
from renomatch.models import Scheme, ServiceProvider, VerificationRecord
from renomatch.verification import CancellationToken

from .records import scheme_from_record, verification_from_record


class RvoUnavailable(RuntimeError):
    """The RVO API could not be reached or answered with an error."""


def _fetch_json(
        url: str,
        *,
        api_key: str,
        timeout_seconds: float = config.HTTP_TIMEOUT_SECONDS,
) -> Dict[str, Any]:
    req = Request(
        url,
        headers={
            "User-Agent": config.USER_AGENT,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
    )
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            data = resp.read().decode("utf-8", errors="replace")
            return json.loads(data)
    except HTTPError:
        raise
    except (URLError, json.JSONDecodeError, TimeoutError) as e:
        # Message carries the error class only; the URL is safe, the key is in headers
        raise RvoUnavailable(f"Failed to fetch RVO JSON: {type(e).__name__}") from e


class RvoSchemeRegistry:
    name = "rvo"

    def __init__(self, *, api_key: Optional[str] = None, base_url: Optional[str] = None) -> None:
        self._api_key = api_key if api_key is not None else config.RVO_API_KEY
        self._base_url = (base_url or config.RVO_API_URL).rstrip("/")

    def fetch_schemes(self) -> List[Scheme]:
        if not self._api_key:
            raise RvoUnavailable("RVO API key not configured")
        try:
            data = _fetch_json(f"{self._base_url}/subsidies/schemes", api_key=self._api_key)
        except HTTPError as e:
            raise RvoUnavailable(f"RVO API error: {e.code}") from e
        return [scheme_from_record(r) for r in (data.get("schemes") or [])]


class RvoCertificationVerifier:
    """
    Looks installers up by KvK (chamber of commerce) number.
    404 means "not registered" and yields None; other failures raise and are
    absorbed by the verification fan-out.
    """

    def __init__(
            self,
            *,
            api_key: Optional[str] = None,
            base_url: Optional[str] = None,
            timeout_seconds: Optional[float] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else config.RVO_API_KEY
        self._base_url = (base_url or config.RVO_API_URL).rstrip("/")
        if timeout_seconds is None:
            # A single lookup never outlasts the whole verification fan-out
            timeout_seconds = min(config.HTTP_TIMEOUT_SECONDS, config.load_verification_config().timeout_seconds)
        self._timeout = timeout_seconds

    def verify(
            self,
            provider: ServiceProvider,
            *,
            timeout_seconds: Optional[float] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[VerificationRecord]:
        if not self._api_key or not provider.kvk_number:
            return None
        if cancel_token is not None and cancel_token.cancelled:
            return None
        timeout = self._timeout if timeout_seconds is None else min(self._timeout, timeout_seconds)
        if timeout <= 0:
            return None
        url = f"{self._base_url}/contractors/{quote(provider.kvk_number)}/certifications"
        try:
            data = _fetch_json(url, api_key=self._api_key, timeout_seconds=timeout)
        except HTTPError as e:
            if e.code == 404:
                return None
            raise RvoUnavailable(f"RVO API error: {e.code}") from e
        return verification_from_record(data)
