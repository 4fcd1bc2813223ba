"""Archived NDBC buoy data from the NDBC THREDDS server

This package resolves buoy data files published by the National Data Buoy
Center and decodes them into tables:
- buoys: list the buoys available in a dataset
- buoy_files: list the NetCDF files archived for a buoy
- buoy: select, download and decode one file
- buoy_stations: station locations from NDBC station pages

Example usage:
    from ndbc_archive import buoy, buoys

    buoys("cwind")

    # first listed file
    result = buoy("cwind", 46085)

    # specific year and datatype
    result = buoy("cwind", 45005, year=2008, datatype="c")
    print(result.data.head())
"""

from .catalog import buoy_files, buoys, find_buoy
from .exceptions import BuoyDecodeError, BuoyError, BuoyNotFoundError
from .fetcher import buoy, buoy_file_url, download_file
from .models import BuoyCatalogEntry, BuoyDataset, BuoyVariableMeta
from .parser import read_buoy_file
from .selector import pick_file
from .stations import buoy_stations

__all__ = [
    "buoy",
    "buoys",
    "buoy_files",
    "find_buoy",
    "buoy_file_url",
    "buoy_stations",
    "download_file",
    "pick_file",
    "read_buoy_file",
    "BuoyCatalogEntry",
    "BuoyDataset",
    "BuoyVariableMeta",
    "BuoyError",
    "BuoyNotFoundError",
    "BuoyDecodeError",
]
