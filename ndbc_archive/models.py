"""
Buoy Data Models

Records passed between the catalog, selection, download and decode stages.
Only BuoyDataset outlives a single request.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd


@dataclass(frozen=True)
class BuoyCatalogEntry:
    """One station folder listed in a dataset catalog"""
    id: str
    url: str


@dataclass
class BuoyVariableMeta:
    """Attributes of a measured variable in a buoy NetCDF file"""
    name: str
    precision: str
    units: Optional[str] = None
    long_name: Optional[str] = None
    missing_value: Any = None
    has_add_offset: bool = False
    has_scale_factor: bool = False


@dataclass
class BuoyDataset:
    """
    Decoded buoy file.

    `data` holds one row per (time, lat, lon) combination with the columns
    time, lat, lon followed by every measured variable. `meta` maps each
    measured variable name to its attributes.
    """
    meta: Dict[str, BuoyVariableMeta] = field(default_factory=dict)
    data: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def variables(self) -> List[str]:
        """Names of the measured variables"""
        return list(self.meta.keys())

    def summary(self, n: int = 10) -> str:
        """Render dimensions, variable names and the first n rows"""
        rows, cols = self.data.shape
        lines = [
            f"Dimensions (rows/cols): [{rows} X {cols}]",
            f"{len(self.variables)} variables: [{', '.join(self.variables)}]",
            "",
            self.data.head(n).to_string(index=False),
        ]
        if rows > n:
            lines.append(f"... with {rows - n} more rows")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.summary()
