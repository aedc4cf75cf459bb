try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import httpx
import pytest

from app.utils.http import RetryConfig, request_with_retry


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _sender(*outcomes):
    """Return a ``send`` callable replaying ``outcomes`` and the list of calls made."""
    calls = []
    request = httpx.Request("GET", "https://api.example.test/items")

    async def send() -> httpx.Response:
        outcome = outcomes[min(len(calls), len(outcomes) - 1)]
        calls.append(outcome)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, request=request)

    return send, calls


def test_backoff_doubles_and_caps() -> None:
    config = RetryConfig(max_attempts=6, initial_delay=0.1, max_delay=0.5, jitter=0)

    assert [config.backoff(n) for n in range(1, 6)] == [0.1, 0.2, 0.4, 0.5, 0.5]


def test_jitter_stays_within_bound() -> None:
    config = RetryConfig(initial_delay=1.0, max_delay=10.0, jitter=0.1)

    for _ in range(50):
        delay = config.compute_delay(2)
        assert 2.0 <= delay <= 2.1


@pytest.mark.asyncio
async def test_server_error_is_retried_up_to_max_attempts() -> None:
    sleep = RecordingSleep()
    send, calls = _sender(503)
    config = RetryConfig(max_attempts=3, initial_delay=0.1, max_delay=1.0, jitter=0)

    response = await request_with_retry(send, method="GET", retry_config=config, sleep=sleep)

    assert response.status_code == 503
    assert len(calls) == 4
    assert sleep.delays == [0.1, 0.2, 0.4]


@pytest.mark.asyncio
async def test_delays_never_decrease_once_capped() -> None:
    sleep = RecordingSleep()
    send, _ = _sender(503)
    config = RetryConfig(max_attempts=6, initial_delay=0.1, max_delay=0.3, jitter=0)

    await request_with_retry(send, method="POST", retry_config=config, sleep=sleep)

    assert sleep.delays == sorted(sleep.delays)
    assert max(sleep.delays) == 0.3


@pytest.mark.asyncio
async def test_client_error_is_never_retried() -> None:
    sleep = RecordingSleep()
    send, calls = _sender(404)

    response = await request_with_retry(send, method="GET", retry_config=RetryConfig(), sleep=sleep)

    assert response.status_code == 404
    assert len(calls) == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_recovers_when_a_retry_succeeds() -> None:
    send, calls = _sender(502, 500, 200)

    response = await request_with_retry(
        send, method="GET", retry_config=RetryConfig(jitter=0), sleep=RecordingSleep()
    )

    assert response.status_code == 200
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_timeout_propagates_without_retry() -> None:
    send, calls = _sender(httpx.ReadTimeout("slow"))

    with pytest.raises(httpx.ReadTimeout):
        await request_with_retry(send, method="GET", retry_config=RetryConfig(), sleep=RecordingSleep())

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_connect_error_is_retried_for_any_method() -> None:
    send, calls = _sender(httpx.ConnectError("refused"), 201)

    response = await request_with_retry(
        send, method="POST", retry_config=RetryConfig(jitter=0), sleep=RecordingSleep()
    )

    assert response.status_code == 201
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_other_transport_errors_retry_only_idempotent_methods() -> None:
    send, calls = _sender(httpx.ReadError("reset"), 200)
    response = await request_with_retry(
        send, method="GET", retry_config=RetryConfig(jitter=0), sleep=RecordingSleep()
    )
    assert response.status_code == 200
    assert len(calls) == 2

    send, calls = _sender(httpx.ReadError("reset"), 200)
    with pytest.raises(httpx.ReadError):
        await request_with_retry(send, method="POST", retry_config=RetryConfig(), sleep=RecordingSleep())
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_persistent_transport_error_surfaces_after_last_retry() -> None:
    send, calls = _sender(httpx.ConnectError("refused"))

    with pytest.raises(httpx.ConnectError):
        await request_with_retry(
            send, method="GET", retry_config=RetryConfig(max_attempts=2, jitter=0), sleep=RecordingSleep()
        )

    assert len(calls) == 3
