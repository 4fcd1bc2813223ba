"""
Scrape NDBC THREDDS catalog pages

Dataset catalogs list one folder per buoy; each buoy catalog lists the
NetCDF files archived for it. Entries are rendered as <a><tt>name</tt></a>.
"""

import logging
import re
from contextlib import nullcontext
from typing import ContextManager, List, Optional

import httpx
from bs4 import BeautifulSoup

from .config import (
    DATASETS,
    FOLDER_SEPARATOR,
    NETCDF_SUFFIX,
    catalog_url,
    settings,
)
from .models import BuoyCatalogEntry
from .selector import pick_first

logger = logging.getLogger(__name__)


def http_client(
    client: Optional[httpx.Client] = None,
    client_options: Optional[dict] = None
) -> ContextManager[httpx.Client]:
    """Use the caller's client as-is, or build one from settings and client_options"""
    if client is not None:
        return nullcontext(client)
    options = {"timeout": settings.http_timeout, "follow_redirects": True}
    options.update(client_options or {})
    return httpx.Client(**options)


def fetch_listing(url: str, client: Optional[httpx.Client] = None) -> List[str]:
    """
    Fetch a catalog page and return the text of every listed entry

    Args:
        url: Catalog page URL
        client: Optional httpx client to issue the request with

    Returns:
        Entry names in page order; empty if the page is not available
    """
    logger.debug(f"Fetching catalog listing {url}")

    with http_client(client) as http:
        response = http.get(url)

    if not response.is_success:
        logger.warning(f"Catalog page {url} returned status {response.status_code}")
        return []

    soup = BeautifulSoup(response.text, "html.parser")
    return [tt.get_text(strip=True) for tt in soup.select("a tt")]


def buoys(dataset: str, client: Optional[httpx.Client] = None) -> List[BuoyCatalogEntry]:
    """
    Get available buoys for a dataset

    Args:
        dataset: Dataset name, one of DATASETS (e.g. "cwind", "stdmet")
        client: Optional httpx client

    Returns:
        Catalog entries (buoy id and catalog page URL) in listing order
    """
    if dataset not in DATASETS:
        logger.warning(f"Unknown dataset '{dataset}', expected one of {sorted(DATASETS)}")

    logger.info(f"Fetching buoy catalog for dataset {dataset}")

    entries = [
        BuoyCatalogEntry(
            id=folder.replace(FOLDER_SEPARATOR, ""),
            url=catalog_url(dataset, folder),
        )
        for folder in fetch_listing(catalog_url(dataset), client=client)
        if folder.endswith(FOLDER_SEPARATOR)
    ]

    if not entries:
        logger.warning(f"No buoys listed for dataset {dataset}")
    else:
        logger.info(f"Found {len(entries)} buoys for dataset {dataset}")
    return entries


def buoy_files(path: str, buoyid: str, client: Optional[httpx.Client] = None) -> List[str]:
    """
    List the NetCDF files in a buoy's catalog page

    The buoy id is removed from every name so that "46085c2020.nc" becomes
    "c2020.nc". Listing order is kept as served.

    Args:
        path: Buoy catalog page URL (BuoyCatalogEntry.url)
        buoyid: Buoy id, any case
        client: Optional httpx client

    Returns:
        Filenames with the buoy id stripped
    """
    buoyid = str(buoyid).lower()
    files = [
        _strip_buoy_id(name, buoyid)
        for name in fetch_listing(path, client=client)
        if name.endswith(NETCDF_SUFFIX)
    ]
    logger.info(f"Found {len(files)} data files for buoy {buoyid}")
    return files


def _strip_buoy_id(name: str, buoyid: str) -> str:
    """Remove every case-insensitive occurrence of buoyid from name"""
    return re.sub(re.escape(buoyid), "", name, flags=re.IGNORECASE)


def find_buoy(dataset: str, buoyid: str, client: Optional[httpx.Client] = None) -> Optional[BuoyCatalogEntry]:
    """First catalog entry whose id contains buoyid (case-insensitive), or None"""
    buoyid = str(buoyid).lower()
    return pick_first(buoys(dataset, client=client), lambda entry: buoyid in entry.id.lower())
