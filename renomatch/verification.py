"""
Best-effort certification verification fan-out.

Each qualified installer gets at most one lookup. Lookups run on a bounded
thread pool and share one CancellationToken; a failed, empty, slow or
cancelled lookup only means "unverified" and never fails the request.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Dict, Optional, Protocol, Sequence

from renomatch.models import ServiceProvider, VerificationRecord

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.05


class CancellationToken:
    """Shared stop signal between a request and the lookups it started."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or `timeout` elapses. True if cancelled."""
        return self._event.wait(timeout)


class CertificationVerifier(Protocol):
    def verify(
            self,
            provider: ServiceProvider,
            *,
            timeout_seconds: Optional[float] = None,
            cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[VerificationRecord]:
        """
        Return a record, or None when the registry has nothing on this installer.

        A lookup must give up within `timeout_seconds` and should return
        early once `cancel_token` is cancelled.
        """
        ...


class NullVerifier:
    """Used when no registry is configured: everyone stays unverified."""

    def verify(self, provider: ServiceProvider, **kwargs) -> Optional[VerificationRecord]:
        return None


def _verify_one(
        verifier: CertificationVerifier,
        provider: ServiceProvider,
        token: CancellationToken,
        deadline: float,
) -> Optional[VerificationRecord]:
    remaining = deadline - time.monotonic()
    if token.cancelled or remaining <= 0:
        return None
    return verifier.verify(provider, timeout_seconds=remaining, cancel_token=token)


def verify_all(
        providers: Sequence[ServiceProvider],
        verifier: CertificationVerifier,
        *,
        max_workers: int = 4,
        timeout_seconds: float = 5.0,
        cancel_token: Optional[CancellationToken] = None,
) -> Dict[str, VerificationRecord]:
    """
    Returns {provider_id: record} for the lookups that succeeded in time.

    Every lookup is handed the time left until the shared deadline and the
    token. When the deadline passes or the token is cancelled, the token is
    set, queued lookups are dropped and in-flight ones are joined before
    returning, so no lookup outlives the call. Late results are discarded.
    No retries.
    """
    token = cancel_token or CancellationToken()
    results: Dict[str, VerificationRecord] = {}
    if not providers or token.cancelled:
        return results

    deadline = time.monotonic() + timeout_seconds
    executor = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="verify")
    futures: Dict[Future, ServiceProvider] = {
        executor.submit(_verify_one, verifier, p, token, deadline): p for p in providers
    }
    pending = set(futures)

    try:
        while pending:
            remaining = deadline - time.monotonic()
            if remaining <= 0 or token.cancelled:
                break
            done, pending = wait(pending, timeout=min(_POLL_SECONDS, remaining), return_when=FIRST_COMPLETED)
            for fut in done:
                provider = futures[fut]
                try:
                    record = fut.result()
                except Exception as exc:
                    logger.warning(
                        "Certification lookup failed for %s: %s", provider.provider_id, type(exc).__name__
                    )
                    continue
                if record is not None:
                    results[provider.provider_id] = record
    finally:
        if pending:
            token.cancel()
            for fut in pending:
                fut.cancel()
            logger.warning("Certification lookups abandoned: %d unfinished", len(pending))
        # In-flight lookups are bounded by the deadline they were handed
        executor.shutdown(wait=True, cancel_futures=True)

    return results
