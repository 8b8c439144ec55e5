import threading
import time

from renomatch.models import VerificationRecord
from renomatch.verification import CancellationToken, NullVerifier, verify_all


def _record(provider):
    return VerificationRecord(kvk_number=provider.kvk_number, company_name=provider.company_name, rvo=True)


class _DictVerifier:
    def __init__(self, fail_ids=(), empty_ids=()):
        self.fail_ids = set(fail_ids)
        self.empty_ids = set(empty_ids)
        self.calls = []
        self.timeouts = []
        self._lock = threading.Lock()

    def verify(self, provider, *, timeout_seconds=None, cancel_token=None):
        with self._lock:
            self.calls.append(provider.provider_id)
            self.timeouts.append(timeout_seconds)
        if provider.provider_id in self.fail_ids:
            raise RuntimeError("registry down")
        if provider.provider_id in self.empty_ids:
            return None
        return _record(provider)


class _BlockingVerifier:
    """Blocks every lookup until released, cancelled or out of time."""

    def __init__(self):
        self.release = threading.Event()

    def verify(self, provider, *, timeout_seconds=None, cancel_token=None):
        end = time.monotonic() + (timeout_seconds if timeout_seconds is not None else 2.0)
        while not self.release.is_set():
            if time.monotonic() >= end:
                return None
            if cancel_token is not None and cancel_token.wait(0.01):
                return None
        return _record(provider)


class _SlowVerifier:
    """Takes a second per lookup unless cancelled; records when each lookup ends."""

    def __init__(self):
        self.finished_at = []
        self._lock = threading.Lock()

    def verify(self, provider, *, timeout_seconds=None, cancel_token=None):
        cancel_token.wait(1.0)
        with self._lock:
            self.finished_at.append(time.monotonic())
        return _record(provider)


def test_verify_all_collects_records(make_provider):
    providers = [make_provider(provider_id="a"), make_provider(provider_id="b")]
    results = verify_all(providers, _DictVerifier())
    assert set(results) == {"a", "b"}
    assert results["a"].rvo is True


def test_one_lookup_per_provider(make_provider):
    providers = [make_provider(provider_id=str(i)) for i in range(6)]
    verifier = _DictVerifier()
    verify_all(providers, verifier, max_workers=3)
    assert sorted(verifier.calls) == sorted(p.provider_id for p in providers)


def test_lookups_get_the_remaining_deadline(make_provider):
    verifier = _DictVerifier()
    verify_all([make_provider(provider_id="a")], verifier, timeout_seconds=2.0)
    assert len(verifier.timeouts) == 1
    assert 0 < verifier.timeouts[0] <= 2.0


def test_failed_and_empty_lookups_mean_unverified(make_provider):
    providers = [make_provider(provider_id="a"), make_provider(provider_id="b"), make_provider(provider_id="c")]
    results = verify_all(providers, _DictVerifier(fail_ids={"a"}, empty_ids={"b"}))
    assert set(results) == {"c"}


def test_timeout_returns_partial_results_and_cancels_token(make_provider):
    verifier = _BlockingVerifier()
    token = CancellationToken()
    providers = [make_provider(provider_id="a"), make_provider(provider_id="b")]

    start = time.monotonic()
    results = verify_all(providers, verifier, max_workers=2, timeout_seconds=0.2, cancel_token=token)
    elapsed = time.monotonic() - start
    verifier.release.set()

    assert results == {}
    assert token.cancelled is True
    assert elapsed < 1.5


def test_no_lookup_finishes_after_verify_all_returns(make_provider):
    verifier = _SlowVerifier()
    providers = [make_provider(provider_id="a"), make_provider(provider_id="b")]

    start = time.monotonic()
    results = verify_all(providers, verifier, max_workers=2, timeout_seconds=0.2)
    returned_at = time.monotonic()
    time.sleep(0.3)

    assert results == {}
    assert len(verifier.finished_at) == 2
    assert max(verifier.finished_at) <= returned_at
    assert returned_at - start < 0.9


def test_pre_cancelled_token_skips_all_lookups(make_provider):
    verifier = _DictVerifier()
    token = CancellationToken()
    token.cancel()
    assert verify_all([make_provider()], verifier, cancel_token=token) == {}
    assert verifier.calls == []


def test_cancel_during_lookups_stops_waiting(make_provider):
    verifier = _BlockingVerifier()
    token = CancellationToken()
    providers = [make_provider(provider_id=str(i)) for i in range(4)]

    timer = threading.Timer(0.1, token.cancel)
    timer.start()
    start = time.monotonic()
    results = verify_all(providers, verifier, max_workers=1, timeout_seconds=5.0, cancel_token=token)
    elapsed = time.monotonic() - start
    verifier.release.set()
    timer.join()

    assert results == {}
    assert elapsed < 1.5


def test_cancellation_token_wait():
    token = CancellationToken()
    assert token.wait(0.01) is False
    token.cancel()
    assert token.wait(0.01) is True


def test_null_verifier_and_empty_input(make_provider):
    assert verify_all([make_provider()], NullVerifier()) == {}
    assert verify_all([], _DictVerifier()) == {}
