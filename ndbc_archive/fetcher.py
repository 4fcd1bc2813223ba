"""
Fetch archived NDBC buoy data

Resolves a (dataset, buoy, year, datatype) request to a single NetCDF file on
the NDBC THREDDS server, downloads it and decodes it.

    catalog page -> buoy catalog page -> file selection -> download -> decode
"""

import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

import httpx

from .catalog import buoy_files, find_buoy, http_client
from .config import settings
from .exceptions import BuoyNotFoundError
from .models import BuoyDataset
from .parser import read_buoy_file
from .selector import pick_file

logger = logging.getLogger(__name__)


def buoy_file_url(dataset: str, buoyid: str, filename: str, base_url: Optional[str] = None) -> str:
    """
    Make the download URL for a single buoy data file

    Args:
        dataset: Dataset name (e.g. "cwind")
        buoyid: Buoy id as used in the catalog (lower case)
        filename: Selected file with the buoy id stripped (e.g. "c2020.nc")
        base_url: THREDDS root (defaults to settings.thredds_base_url)

    Returns:
        fileServer URL, e.g. .../fileServer/data/cwind/46085/46085c2020.nc
    """
    base_url = base_url or settings.thredds_base_url
    return f"{base_url}/fileServer/data/{dataset}/{buoyid}/{buoyid}{filename}"


def download_file(
    url: str,
    output_dir: Union[str, Path],
    buoyid: str,
    filename: str,
    client: Optional[httpx.Client] = None,
    **client_options
) -> Path:
    """
    Download a single NetCDF file to disk

    Args:
        url: File URL (see buoy_file_url)
        output_dir: Directory to write into; created if missing
        buoyid: Buoy id, used to rebuild the original file name
        filename: Selected file with the buoy id stripped
        client: Optional httpx client
        **client_options: Passed to httpx.Client when no client is given
            (timeout, verify, proxy, headers, transport, ...)

    Returns:
        Path of the downloaded file

    Raises:
        httpx.HTTPError: on transport failure or non-success status
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    outpath = output_dir / f"{buoyid}{filename}"

    logger.info(f"Downloading {url} -> {outpath}")

    with http_client(client, client_options) as http:
        with http.stream("GET", url) as response:
            response.raise_for_status()
            try:
                with open(outpath, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
            except Exception:
                outpath.unlink(missing_ok=True)
                raise

    logger.info(f"Downloaded {outpath.stat().st_size / 1024:.1f} KB")
    return outpath


def buoy(
    dataset: str,
    buoyid: Union[str, int],
    year: Optional[Union[int, str]] = None,
    datatype: Optional[str] = None,
    output_dir: Optional[Union[str, Path]] = None,
    client: Optional[httpx.Client] = None,
    **client_options
) -> BuoyDataset:
    """
    Get data for a buoy given a dataset name, buoy id, year and datatype

    Without a year or datatype the first file listed for the buoy is used.
    When several files match, the first in listing order is used.

    Args:
        dataset: Dataset name, one of config.DATASETS
        buoyid: Buoy id, numeric or character, any case (e.g. 46085, "VCAF1")
        year: Year of data collection
        datatype: Data type code, one of 'c', 'cc', 'p', 'o'
        output_dir: Scratch directory for the download (defaults to
            settings.scratch_dir, then the system temp dir)
        client: Optional httpx client used for every request
        **client_options: Passed to httpx.Client when no client is given

    Returns:
        Decoded BuoyDataset

    Raises:
        BuoyNotFoundError: no matching buoy, no files, or no file matching
            the year/datatype hints
        httpx.HTTPError: on transport failures
        BuoyDecodeError: if the downloaded file cannot be decoded
    """
    buoyid = str(buoyid).lower()
    scratch = Path(output_dir or settings.scratch_dir or tempfile.gettempdir()) / dataset

    with http_client(client, client_options) as http:
        entry = find_buoy(dataset, buoyid, client=http)
        if entry is None:
            raise BuoyNotFoundError()

        files = buoy_files(entry.url, buoyid, client=http)
        if not files:
            raise BuoyNotFoundError()

        fileuse = pick_file(files, year=year, datatype=datatype)
        if fileuse is None:
            raise BuoyNotFoundError()

        url = buoy_file_url(dataset, buoyid, fileuse)
        ncfile = download_file(url, scratch, buoyid, fileuse, client=http)

    return read_buoy_file(ncfile)
