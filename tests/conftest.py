"""Shared fixtures: NetCDF stub files and a fake NDBC server."""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import httpx
import numpy as np
import pytest
from netCDF4 import Dataset

THREDDS = "https://dods.ndbc.noaa.gov/thredds"
NDBC = "https://www.ndbc.noaa.gov"

EPOCH_UNITS = "seconds since 1970-01-01 00:00:00 UTC"


def listing_html(entries: Sequence[str]) -> str:
    """THREDDS-style catalog page listing entries as <a><tt>name</tt></a>."""
    rows = "".join(
        f'<tr><td><a href="{entry}catalog.html"><tt>{entry}</tt></a></td></tr>'
        for entry in entries
    )
    return (
        "<html><body>"
        '<h1><a href="/thredds/catalog.html">Catalog</a></h1>'
        f"<table>{rows}</table>"
        "</body></html>"
    )


def write_buoy_file(
    path: Path,
    times: Sequence,
    lats: Sequence[float],
    lons: Sequence[float],
    variables: Dict[str, Tuple[np.ndarray, Dict]],
    fill_values: Optional[Dict[str, float]] = None,
) -> Path:
    """Write a NetCDF file laid out like an NDBC archive file."""
    fill_values = fill_values or {}
    with Dataset(str(path), "w") as nc:
        nc.createDimension("time", len(times))
        nc.createDimension("latitude", len(lats))
        nc.createDimension("longitude", len(lons))

        if isinstance(times[0], str):
            time = nc.createVariable("time", str, ("time",))
            time[:] = np.array(times, dtype=object)
        else:
            time = nc.createVariable("time", "i4", ("time",))
            time.units = EPOCH_UNITS
            time[:] = np.array(times)

        lat = nc.createVariable("latitude", "f4", ("latitude",))
        lat.units = "degrees_north"
        lat[:] = np.array(lats)
        lon = nc.createVariable("longitude", "f4", ("longitude",))
        lon.units = "degrees_east"
        lon[:] = np.array(lons)

        for name, (values, attrs) in variables.items():
            var = nc.createVariable(
                name, "f4", ("time", "latitude", "longitude"),
                fill_value=fill_values.get(name),
            )
            for key, value in attrs.items():
                var.setncattr(key, value)
            var[:] = values
    return path


@pytest.fixture
def buoy_file(tmp_path):
    """Factory writing NetCDF stub files into tmp_path."""
    def _make(name: str = "46085c2020.nc", **kwargs) -> Path:
        return write_buoy_file(tmp_path / name, **kwargs)
    return _make


@pytest.fixture
def wind_file(buoy_file):
    """2 x 1 x 1 cwind file with one wind_dir variable."""
    return buoy_file(
        times=[1577836800, 1577837400],
        lats=[46.1],
        lons=[-131.0],
        variables={
            "wind_dir": (
                np.array([270.0, 280.0]).reshape(2, 1, 1),
                {"units": "degrees_true", "long_name": "Wind Direction"},
            ),
        },
        fill_values={"wind_dir": 999.0},
    )


class FakeNDBC:
    """Serves canned pages through httpx.MockTransport and records requests."""

    def __init__(self, pages: Optional[Dict[str, Union[str, bytes, Tuple[int, str]]]] = None):
        self.pages = dict(pages or {})
        self.requests: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        page = self.pages.get(url)
        if page is None:
            return httpx.Response(404, text="Not Found")
        if isinstance(page, tuple):
            status, body = page
            return httpx.Response(status, text=body)
        if isinstance(page, bytes):
            return httpx.Response(200, content=page)
        return httpx.Response(200, text=page)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=self.transport())

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())


@pytest.fixture
def fake_ndbc():
    return FakeNDBC()
