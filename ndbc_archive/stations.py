"""
NDBC station metadata

Station locations come from scraping every station page linked from the NDBC
station index. This is slow (one request per station), so a pre-built snapshot
table is used unless a refresh is requested.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union
from urllib.parse import parse_qs, urlparse

import httpx
import numpy as np
import pandas as pd
from bs4 import BeautifulSoup

from .config import settings

logger = logging.getLogger(__name__)

STATION_INDEX_PAGE = "to_station.shtml"
STATION_LINK_PATTERN = "station_page.php?station"

_LATITUDE_RE = re.compile(r"([0-9]+\.[0-9]+)\s*([NS])\b")
_LONGITUDE_RE = re.compile(r"([0-9]+\.[0-9]+)\s*([EW])\b")


def parse_coordinate(description: Optional[str], pattern: re.Pattern, negative: str) -> float:
    """
    Parse a hemisphere-suffixed coordinate out of a station description

    Args:
        description: DC.description text, e.g. "... 32.499 N 79.099 W ..."
        pattern: _LATITUDE_RE or _LONGITUDE_RE
        negative: Hemisphere letter that makes the value negative ("S" or "W")

    Returns:
        Decimal degrees, or NaN if the description has no such coordinate
    """
    if not description:
        return np.nan
    match = pattern.search(description)
    if match is None:
        return np.nan
    value = float(match.group(1))
    return -value if match.group(2) == negative else value


def parse_station_page(html: str, station: str) -> Dict[str, object]:
    """Build one station record from a station page's <meta name=...> tags"""
    soup = BeautifulSoup(html, "html.parser")
    meta = {
        tag["name"]: tag.get("content")
        for tag in soup.find_all("meta", attrs={"name": True})
    }
    description = meta.get("DC.description")
    record = {
        "station": station,
        "lat": parse_coordinate(description, _LATITUDE_RE, "S"),
        "lon": parse_coordinate(description, _LONGITUDE_RE, "W"),
    }
    record.update(meta)
    return record


def station_id_from_url(url: Union[str, httpx.URL]) -> Optional[str]:
    """Extract the station= query value of a station page URL"""
    values = parse_qs(urlparse(str(url)).query).get("station")
    return values[0] if values else None


def station_page_urls(html: str, base_url: Optional[str] = None) -> List[str]:
    """Absolute URLs of every station page linked from the station index"""
    base_url = base_url or settings.ndbc_base_url
    soup = BeautifulSoup(html, "html.parser")
    return [
        f"{base_url}/{link['href'].lstrip('/')}"
        for link in soup.find_all("a", href=True)
        if STATION_LINK_PATTERN in link["href"]
    ]


async def fetch_station_metadata(client: httpx.AsyncClient) -> pd.DataFrame:
    """
    Scrape metadata for every station listed on the NDBC station index

    Station pages are fetched concurrently. Pages that fail or answer with a
    status of 300 or more are skipped, so the result is best effort and its
    row order is not guaranteed.

    Args:
        client: httpx async client

    Returns:
        DataFrame with station, lat, lon and one column per page meta tag
    """
    index_url = f"{settings.ndbc_base_url}/{STATION_INDEX_PAGE}"
    logger.info(f"Fetching station index {index_url}")

    response = await client.get(index_url)
    response.raise_for_status()
    urls = station_page_urls(response.text)

    logger.info(f"Fetching {len(urls)} station pages")
    tasks = [client.get(url) for url in urls]
    responses = await asyncio.gather(*tasks, return_exceptions=True)

    records = []
    failed = 0
    for result in responses:
        if isinstance(result, Exception):
            logger.debug(f"Station page request failed: {result}")
            failed += 1
            continue
        if result.status_code >= 300:
            failed += 1
            continue
        station = station_id_from_url(result.url)
        if station is None:
            failed += 1
            continue
        records.append(parse_station_page(result.text, station))

    if failed:
        logger.warning(f"Skipped {failed} of {len(urls)} station pages")
    logger.info(f"Collected metadata for {len(records)} stations")

    return pd.DataFrame.from_records(records)


def load_station_snapshot(path: Union[str, Path]) -> pd.DataFrame:
    """Load a pre-built station table (CSV)"""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Station snapshot not found: {path}")
    logger.info(f"Loading station snapshot {path}")
    return pd.read_csv(path, dtype={"station": str})


def buoy_stations(
    refresh: bool = False,
    snapshot_path: Optional[Union[str, Path]] = None,
    **client_options
) -> pd.DataFrame:
    """
    Get buoy stations and their locations

    Args:
        refresh: Scrape every station page instead of reading the snapshot.
            Takes a long time.
        snapshot_path: Snapshot CSV (defaults to settings.station_snapshot_path)
        **client_options: Passed to httpx.AsyncClient when refreshing

    Returns:
        DataFrame with at least station, lat and lon columns
    """
    if refresh:
        return asyncio.run(_refresh_stations(client_options))

    snapshot_path = snapshot_path or settings.station_snapshot_path
    if snapshot_path is None:
        raise FileNotFoundError(
            "No station snapshot configured; set NDBC_ARCHIVE_STATION_SNAPSHOT_PATH "
            "or call buoy_stations(refresh=True)"
        )
    return load_station_snapshot(snapshot_path)


async def _refresh_stations(client_options: dict) -> pd.DataFrame:
    options = {"timeout": settings.http_timeout, "follow_redirects": True}
    options.update(client_options)
    async with httpx.AsyncClient(**options) as client:
        return await fetch_station_metadata(client)
