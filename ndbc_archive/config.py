"""Configuration for NDBC archive access"""

from pathlib import Path
from typing import Dict, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings, overridable from the environment or a .env file"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NDBC_ARCHIVE_",
    )

    # THREDDS server hosting the archived NetCDF files
    thredds_base_url: str = "https://dods.ndbc.noaa.gov/thredds"

    # NDBC website (station pages)
    ndbc_base_url: str = "https://www.ndbc.noaa.gov"

    # Seconds; None leaves requests without a timeout
    http_timeout: Optional[float] = None

    # Downloads go to the system temp dir when unset
    scratch_dir: Optional[Path] = None

    # Pre-shipped station table used by buoy_stations(refresh=False)
    station_snapshot_path: Optional[Path] = None


settings = Settings()


# Datasets published under {thredds_base_url}/catalog/data/
DATASETS: Dict[str, str] = {
    "adcp": "Acoustic Doppler Current Profiler data",
    "adcp2": "MMS Acoustic Doppler Current Profiler data",
    "cwind": "Continuous Winds data",
    "dart": "Deep-ocean Assessment and Reporting of Tsunamis data",
    "mmbcur": "Marsh-McBirney Current Measurements data",
    "ocean": "Oceanographic data",
    "pwind": "Peak Winds data",
    "stdmet": "Standard Meteorological data",
    "swden": "Spectral Wave Density data with Spectral Wave Direction data",
    "wlevel": "Water Level data",
}

CATALOG_PAGE = "catalog.html"
FOLDER_SEPARATOR = "/"
NETCDF_SUFFIX = ".nc"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def catalog_url(dataset: str, folder: str = "", base_url: Optional[str] = None) -> str:
    """
    Get the THREDDS catalog page URL for a dataset or one of its folders

    Args:
        dataset: Dataset name (e.g. "cwind")
        folder: Folder entry as listed, including its trailing separator
        base_url: THREDDS root (defaults to settings.thredds_base_url)

    Returns:
        Absolute catalog page URL
    """
    base_url = base_url or settings.thredds_base_url
    return f"{base_url}/catalog/data/{dataset}/{folder}{CATALOG_PAGE}"
