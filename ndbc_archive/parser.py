"""
Decode NDBC NetCDF files into tabular form

NDBC archive files carry time, latitude and longitude dimensions and one
variable per measured quantity, shaped (time, latitude, longitude) or with
a depth/frequency dimension after time. Decoding flattens every variable and
expands the coordinates so that each flattened value gets its time, lat and
lon.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from netCDF4 import Dataset as NetCDFDataset, chartostring, default_fillvals

from .config import TIMESTAMP_FORMAT
from .exceptions import BuoyDecodeError
from .models import BuoyDataset, BuoyVariableMeta

logger = logging.getLogger(__name__)

TIME_DIMENSIONS = ("time",)
LATITUDE_DIMENSIONS = ("latitude", "lat")
LONGITUDE_DIMENSIONS = ("longitude", "lon")

# netCDF type names keyed by numpy dtype kind and item size
_PRECISIONS = {
    ("i", 1): "byte",
    ("i", 2): "short",
    ("i", 4): "int",
    ("i", 8): "int64",
    ("u", 1): "ubyte",
    ("u", 2): "ushort",
    ("u", 4): "uint",
    ("u", 8): "uint64",
    ("f", 4): "float",
    ("f", 8): "double",
    ("S", 1): "char",
}


@dataclass(frozen=True)
class EpochTime:
    """Seconds since 1970-01-01T00:00:00Z"""
    seconds: float


@dataclass(frozen=True)
class IsoTime:
    """ISO-8601 timestamp string"""
    value: str


TimeValue = Union[EpochTime, IsoTime]


def as_time_value(raw) -> TimeValue:
    """Tag a raw coordinate value as epoch seconds or an ISO string"""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return IsoTime(raw)
    return EpochTime(float(raw))


def format_timestamp(value: TimeValue) -> Optional[str]:
    """
    Render a time value as YYYY-MM-DDTHH:MM:SSZ in UTC

    Returns None for missing values (NaN seconds or blank strings).
    """
    if isinstance(value, EpochTime):
        if np.isnan(value.seconds):
            return None
        stamp = datetime.fromtimestamp(value.seconds, tz=timezone.utc)
        return stamp.strftime(TIMESTAMP_FORMAT)

    if not value.value.strip():
        return None
    stamp = pd.Timestamp(value.value)
    if stamp.tzinfo is None:
        stamp = stamp.tz_localize("UTC")
    else:
        stamp = stamp.tz_convert("UTC")
    return stamp.strftime(TIMESTAMP_FORMAT)


def convert_time(n: Optional[float] = None, iso_time: Optional[str] = None) -> Optional[str]:
    """Canonical timestamp from whichever of n or iso_time is given first"""
    if n is not None:
        return format_timestamp(EpochTime(float(n)))
    if iso_time is not None:
        return format_timestamp(IsoTime(iso_time))
    return None


def canonical_times(values: Sequence) -> List[Optional[str]]:
    """Convert an array of raw time coordinates to canonical timestamps"""
    return [format_timestamp(as_time_value(value)) for value in values]


def broadcast_coordinates(
    times: Sequence,
    lats: Sequence,
    lons: Sequence,
    rows: int
) -> Dict[str, np.ndarray]:
    """
    Expand coordinate arrays to one value per row

    Rows are ordered time-major, then latitude, then longitude (longitude
    varies fastest), which is C order for variables shaped
    (time, latitude, longitude). Variables with an extra dimension between
    time and latitude, such as (time, depth, latitude, longitude) in adcp
    files, repeat the latitude/longitude block once per extra index.

    Args:
        times: Time coordinate values (length T)
        lats: Latitude values (length Y)
        lons: Longitude values (length X)
        rows: Number of rows in the table (T * Y * X, times any extra
            dimension)

    Returns:
        Dict with "time", "lat" and "lon" arrays, each `rows` long
    """
    times = np.asarray(times, dtype=object)
    lats = np.asarray(lats)
    lons = np.asarray(lons)
    block = len(lats) * len(lons)

    expanded = {
        "time": np.repeat(times, rows // len(times)) if len(times) else times,
        "lat": np.tile(np.repeat(lats, len(lons)), rows // block) if block else lats,
        "lon": np.tile(lons, rows // len(lons)) if len(lons) else lons,
    }

    for name, values in expanded.items():
        if len(values) != rows:
            raise BuoyDecodeError(
                f"Cannot broadcast {name} to {rows} rows "
                f"(time={len(times)}, lat={len(lats)}, lon={len(lons)})"
            )
    return expanded


def _as_array(values) -> np.ndarray:
    """Flatten variable values to a float64 or str array, masked -> missing"""
    if values.dtype.kind == "S" and values.ndim > 1:
        values = chartostring(values)

    kind = values.dtype.kind
    if kind in "SUO":
        if np.ma.isMaskedArray(values):
            values = values.filled(b"" if kind == "S" else "")
        flat = np.asarray(values).ravel()
        return np.array(
            [v.decode("utf-8") if isinstance(v, bytes) else str(v) for v in flat],
            dtype=object,
        )

    if np.ma.isMaskedArray(values):
        return values.astype(np.float64).filled(np.nan).ravel()
    return np.asarray(values, dtype=np.float64).ravel()


def _find_dimension(coords: Dict[str, np.ndarray], names: Sequence[str]) -> np.ndarray:
    for name in names:
        if name in coords:
            return coords[name]
    raise BuoyDecodeError(f"No {'/'.join(names)} dimension in file (found {list(coords)})")


def _precision(variable) -> str:
    dtype = variable.dtype
    if dtype is str:
        return "string"
    dtype = np.dtype(dtype)
    return _PRECISIONS.get((dtype.kind, dtype.itemsize), dtype.name)


def _missing_value(variable):
    attrs = variable.ncattrs()
    for attr in ("_FillValue", "missing_value"):
        if attr in attrs:
            value = variable.getncattr(attr)
            if not hasattr(value, "item"):
                return value
            # CF allows a vector of missing values
            return value.item() if np.size(value) == 1 else value.tolist()
    if variable.dtype is str:
        return None
    return default_fillvals.get(np.dtype(variable.dtype).str[1:])


def variable_meta(variable) -> BuoyVariableMeta:
    """Collect the attributes of a NetCDF variable"""
    attrs = variable.ncattrs()
    return BuoyVariableMeta(
        name=variable.name,
        precision=_precision(variable),
        units=variable.getncattr("units") if "units" in attrs else None,
        long_name=variable.getncattr("long_name") if "long_name" in attrs else None,
        missing_value=_missing_value(variable),
        has_add_offset="add_offset" in attrs,
        has_scale_factor="scale_factor" in attrs,
    )


def read_buoy_file(path: Union[str, Path]) -> BuoyDataset:
    """
    Decode a downloaded NDBC NetCDF file

    Args:
        path: Local path to the .nc file

    Returns:
        BuoyDataset with per-variable metadata and one row per
        (time, lat, lon) combination

    Raises:
        BuoyDecodeError: if the file cannot be opened or has an unexpected layout
    """
    logger.info(f"Decoding buoy file {path}")

    try:
        nc = NetCDFDataset(str(path), mode="r")
    except OSError as e:
        raise BuoyDecodeError(f"Cannot open {path} as NetCDF: {e}") from e

    try:
        coords = {}
        for dim_name, dim in nc.dimensions.items():
            if dim_name in nc.variables:
                coords[dim_name] = _as_array(nc.variables[dim_name][:])
            else:
                coords[dim_name] = np.arange(1, len(dim) + 1, dtype=np.float64)

        times = canonical_times(_find_dimension(coords, TIME_DIMENSIONS))
        lats = _find_dimension(coords, LATITUDE_DIMENSIONS)
        lons = _find_dimension(coords, LONGITUDE_DIMENSIONS)

        measured = [name for name in nc.variables if name not in nc.dimensions]
        if not measured:
            raise BuoyDecodeError(f"No measured variables in {path}")

        columns = {name: _as_array(nc.variables[name][:]) for name in measured}
        meta = {name: variable_meta(nc.variables[name]) for name in measured}
    except (KeyError, IndexError, ValueError, RuntimeError) as e:
        raise BuoyDecodeError(f"Failed to read {path}: {e}") from e
    finally:
        nc.close()

    rows = len(columns[measured[0]])
    frame = pd.DataFrame(broadcast_coordinates(times, lats, lons, rows))
    try:
        data = pd.concat([frame, pd.DataFrame(columns)], axis=1)
    except ValueError as e:
        raise BuoyDecodeError(f"Measured variables in {path} differ in length: {e}") from e

    logger.info(
        f"Decoded {len(data)} rows x {len(measured)} variables "
        f"(time={len(times)}, lat={len(lats)}, lon={len(lons)})"
    )
    return BuoyDataset(meta=meta, data=data)
