from typing import Callable

import httpx
import pytest

LATEST_BODY = """\
#YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP
#yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC
2024 03 05 14 30 200  5.0  6.0   1.2  12.0   7.5 280 1020.0  14.5  15.1
"""

RECENT_BODY = """\
#YY  MM DD hh mm WDIR WSPD GST  WVHT   DPD   APD MWD   PRES  ATMP  WTMP
#yr  mo dy hr mn degT m/s  m/s     m   sec   sec degT   hPa  degC  degC
2024 03 05 15 00 200  5.0  6.0   1.5  12.0   7.5 280 1020.0  14.5  15.1
2024 03 05 14 30 200  5.0  6.0   1.4  12.0   7.5 280 1020.0  14.5  15.1
2024 03 05 14 00 200  5.0  6.0   1.3  12.0   7.5 280 1020.0  14.5  15.1
2024 03 05 13 30 200  5.0  6.0   1.2  12.0   7.5 280 1020.0  14.5  15.1
2024 03 05 13 00 200  5.0  6.0   1.1  12.0   7.5 280 1020.0  14.5  15.1
"""


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ndbc_routes() -> dict[str, tuple[int, str]]:
    return {
        "/data/latestobs/46237.txt": (200, LATEST_BODY),
        "/data/realtime2/46237.txt": (200, RECENT_BODY),
    }


@pytest.fixture()
def make_transport() -> Callable[[dict[str, tuple[int, str]]], tuple[httpx.MockTransport, list]]:
    """Build a MockTransport answering by URL path and recording every request."""

    def factory(routes: dict[str, tuple[int, str]]):
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            route = routes.get(request.url.path)
            if route is None:
                return httpx.Response(404, text="Not Found")
            status, body = route
            return httpx.Response(status, text=body)

        return httpx.MockTransport(handler), calls

    return factory
