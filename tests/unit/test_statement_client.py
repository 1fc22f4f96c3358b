"""Unit Tests for the HTTP statement provider client."""

from datetime import date
from functools import partial
from uuid import uuid4

import httpx
import pytest

from cardcycle.domain.exceptions import TransientProviderError, TransientProviderTimeoutError
from cardcycle.infrastructure.clients import HttpStatementProviderClient

BASE_URL = "http://provider.test"


@pytest.fixture
def install_transport(monkeypatch):
    """Route the client's httpx requests through a handler; returns the request log."""

    def _install(handler):
        requests = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        transport = httpx.MockTransport(recording_handler)
        monkeypatch.setattr(httpx, "AsyncClient", partial(httpx.AsyncClient, transport=transport))
        return requests

    return _install


def make_client(max_retries: int = 3) -> HttpStatementProviderClient:
    return HttpStatementProviderClient(base_url=BASE_URL, timeout=1.0, max_retries=max_retries)


class TestHttpStatementProviderClient:
    """Tests for fetching and parsing statement periods."""

    @pytest.mark.asyncio
    async def test_parses_periods_newest_first(self, install_transport):
        account_id = uuid4()
        requests = install_transport(
            lambda request: httpx.Response(
                200,
                json={
                    "periods": [
                        {"end_date": "2024-02-15", "start_date": "2024-01-16"},
                        {"end_date": "2024-03-15T00:00:00Z", "confidence": 0.9},
                        {"start_date": "2024-01-01"},
                    ]
                },
            )
        )

        periods = await make_client().get_statement_periods(account_id)

        assert [p.end_date for p in periods] == [date(2024, 3, 15), date(2024, 2, 15)]
        assert periods[0].start_date is None
        assert periods[0].confidence == 0.9
        assert periods[1].start_date == date(2024, 1, 16)
        assert requests[0].url.params["account_id"] == str(account_id)
        assert requests[0].url.path == "/statements/periods"

    @pytest.mark.asyncio
    async def test_not_found_means_no_periods(self, install_transport):
        requests = install_transport(lambda request: httpx.Response(404))

        assert await make_client().get_statement_periods(uuid4()) == []
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_server_error_retried_then_succeeds(self, install_transport):
        responses = iter([httpx.Response(503), httpx.Response(200, json={"periods": []})])
        requests = install_transport(lambda request: next(responses))

        assert await make_client().get_statement_periods(uuid4()) == []
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_persistent_server_error_raises(self, install_transport):
        requests = install_transport(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(TransientProviderError) as exc_info:
            await make_client(max_retries=2).get_statement_periods(uuid4())

        assert exc_info.value.status_code == 500
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, install_transport):
        requests = install_transport(lambda request: httpx.Response(401, text="bad token"))

        with pytest.raises(TransientProviderError) as exc_info:
            await make_client().get_statement_periods(uuid4())

        assert exc_info.value.status_code == 401
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_timeout_raises_timeout_error(self, install_transport):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        requests = install_transport(handler)

        with pytest.raises(TransientProviderTimeoutError):
            await make_client(max_retries=2).get_statement_periods(uuid4())

        assert len(requests) == 2
