"""Pick one data file out of a buoy's file listing"""

import logging
from typing import Callable, Iterable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


def pick_first(items: Iterable[T], predicate: Callable[[T], bool]) -> Optional[T]:
    """Return the first item satisfying predicate, in listing order, or None

    Listings are ordered by the server and several entries can match a
    request; the earliest one always wins.
    """
    for item in items:
        if predicate(item):
            return item
    return None


def pick_file(
    files: Iterable[str],
    year: Optional[Union[int, str]] = None,
    datatype: Optional[str] = None
) -> Optional[str]:
    """
    Select a file by year and/or datatype hint.

    Files look like "c2008.nc" (datatype code followed by year) once the buoy
    id has been stripped. Hints are matched by plain substring containment:

    - no hints: the first file
    - year only: first file containing the year
    - datatype only: first file containing the datatype
    - both: first file containing datatype immediately followed by year

    Args:
        files: Candidate filenames in listing order
        year: Year of data collection
        datatype: Data type code, e.g. 'c', 'cc', 'p', 'o'

    Returns:
        The chosen filename, or None if nothing matches
    """
    if year is None and datatype is None:
        chosen = pick_first(files, lambda name: True)
    else:
        needle = f"{datatype or ''}{year if year is not None else ''}"
        chosen = pick_first(files, lambda name: needle in name)

    if chosen is not None:
        logger.info(f"Using {chosen}")
    return chosen
