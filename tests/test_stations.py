"""Unit tests for station metadata scraping."""

import math

import httpx
import pandas as pd
import pytest

from conftest import NDBC, FakeNDBC
from ndbc_archive.stations import (
    _LATITUDE_RE,
    _LONGITUDE_RE,
    buoy_stations,
    fetch_station_metadata,
    load_station_snapshot,
    parse_coordinate,
    parse_station_page,
    station_id_from_url,
    station_page_urls,
)

INDEX = f"{NDBC}/to_station.shtml"

INDEX_HTML = """
<html><body>
<a href="station_page.php?station=41001">41001</a>
<a href="station_page.php?station=vcaf1">VCAF1</a>
<a href="station_page.php?station=gone">GONE</a>
<a href="/faq/index.shtml">FAQ</a>
</body></html>
"""


def station_html(description: str, title: str) -> str:
    return (
        "<html><head>"
        f'<meta name="DC.title" content="{title}">'
        f'<meta name="DC.description" content="{description}">'
        '<meta charset="utf-8">'
        "</head><body></body></html>"
    )


class TestParseCoordinate:
    def test_north_west(self) -> None:
        text = "Station 41001 - East Hatteras 34.724 N 72.317 W"
        assert parse_coordinate(text, _LATITUDE_RE, "S") == 34.724
        assert parse_coordinate(text, _LONGITUDE_RE, "W") == -72.317

    def test_south_east(self) -> None:
        text = "12.5S 130.25E"
        assert parse_coordinate(text, _LATITUDE_RE, "S") == -12.5
        assert parse_coordinate(text, _LONGITUDE_RE, "W") == 130.25

    def test_hemisphere_letter_stands_alone(self) -> None:
        text = "Moored 12.5 NM east of Cape Hatteras at 35.006 N 75.402 W"
        assert parse_coordinate(text, _LATITUDE_RE, "S") == 35.006
        assert math.isnan(parse_coordinate("Range 12.5 NM", _LATITUDE_RE, "S"))

    @pytest.mark.parametrize("text", [None, "", "no position"])
    def test_missing(self, text) -> None:
        assert math.isnan(parse_coordinate(text, _LATITUDE_RE, "S"))


class TestPageParsing:
    def test_station_record(self) -> None:
        record = parse_station_page(station_html("34.724 N 72.317 W", "Station 41001"), "41001")
        assert record["station"] == "41001"
        assert record["lat"] == 34.724
        assert record["lon"] == -72.317
        assert record["DC.title"] == "Station 41001"
        assert "charset" not in record

    def test_station_id_from_url(self) -> None:
        assert station_id_from_url(f"{NDBC}/station_page.php?station=46085") == "46085"
        assert station_id_from_url(f"{NDBC}/index.shtml") is None

    def test_station_page_urls(self) -> None:
        assert station_page_urls(INDEX_HTML, base_url=NDBC) == [
            f"{NDBC}/station_page.php?station=41001",
            f"{NDBC}/station_page.php?station=vcaf1",
            f"{NDBC}/station_page.php?station=gone",
        ]


@pytest.fixture
def station_server() -> FakeNDBC:
    return FakeNDBC({
        INDEX: INDEX_HTML,
        f"{NDBC}/station_page.php?station=41001": station_html("34.724 N 72.317 W", "41001"),
        f"{NDBC}/station_page.php?station=vcaf1": station_html("24.711 N 81.107 W", "VCAF1"),
    })


class TestFetchStationMetadata:
    @pytest.mark.asyncio
    async def test_skips_failed_pages(self, station_server) -> None:
        async with station_server.async_client() as client:
            stations = await fetch_station_metadata(client)

        assert sorted(stations["station"]) == ["41001", "vcaf1"]
        row = stations.set_index("station").loc["vcaf1"]
        assert row["lat"] == 24.711
        assert row["lon"] == -81.107
        assert len(station_server.requests) == 4

    @pytest.mark.asyncio
    async def test_transport_errors_are_skipped(self, station_server) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if "station=41001" in str(request.url):
                raise httpx.ReadTimeout("slow", request=request)
            return station_server.handler(request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            stations = await fetch_station_metadata(client)

        assert list(stations["station"]) == ["vcaf1"]

    @pytest.mark.asyncio
    async def test_index_failure_raises(self) -> None:
        async with FakeNDBC().async_client() as client:
            with pytest.raises(httpx.HTTPStatusError):
                await fetch_station_metadata(client)


class TestBuoyStations:
    def test_refresh(self, station_server) -> None:
        stations = buoy_stations(refresh=True, transport=station_server.transport())
        assert set(stations["station"]) == {"41001", "vcaf1"}

    def test_snapshot(self, tmp_path) -> None:
        path = tmp_path / "stations.csv"
        pd.DataFrame({"station": ["00922", "41001"], "lat": [1.0, 2.0], "lon": [3.0, 4.0]}).to_csv(
            path, index=False
        )
        stations = buoy_stations(snapshot_path=path)
        assert list(stations["station"]) == ["00922", "41001"]
        assert list(stations["lat"]) == [1.0, 2.0]

    def test_missing_snapshot(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_station_snapshot(tmp_path / "absent.csv")

    def test_no_snapshot_configured(self, monkeypatch) -> None:
        monkeypatch.setattr("ndbc_archive.stations.settings.station_snapshot_path", None)
        with pytest.raises(FileNotFoundError):
            buoy_stations()
