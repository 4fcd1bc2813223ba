"""Errors raised while resolving and decoding buoy files"""


class BuoyError(Exception):
    """Base class for ndbc_archive errors"""


class BuoyNotFoundError(BuoyError, LookupError):
    """No catalog entry, data file or matching file for a request"""

    def __init__(self, message: str = "No data files found, try a different search"):
        super().__init__(message)


class BuoyDecodeError(BuoyError):
    """A downloaded file could not be read as a buoy NetCDF file"""
