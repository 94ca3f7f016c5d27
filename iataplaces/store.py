"""In-memory airport store indexed by IATA code."""
from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from types import MappingProxyType
from typing import IO, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .models import Airport
from .parsing import build_column_index, parse_airport_row, to_upper_ascii

logger = logging.getLogger(__name__)


class StructuralLoadError(Exception):
    """Raised when no store can be built from the input at all."""
    pass


class AirportStore:
    """Read-only mapping of IATA code to Airport."""

    def __init__(self, by_iata: Mapping[str, Airport]):
        self._by_iata = MappingProxyType(dict(by_iata))

    @property
    def by_iata(self) -> Mapping[str, Airport]:
        return self._by_iata

    def lookup_iata(self, code: str) -> Tuple[Optional[Airport], bool]:
        """Case-insensitive lookup; a miss returns ``(None, False)``."""
        if not code:
            return None, False
        airport = self._by_iata.get(to_upper_ascii(code))
        return airport, airport is not None

    def get(self, code: str) -> Optional[Airport]:
        return self.lookup_iata(code)[0]

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and self.lookup_iata(code)[1]

    def __len__(self) -> int:
        return len(self._by_iata)

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_iata)

    def __repr__(self) -> str:
        return f"AirportStore({len(self)} airports)"


def load_from_stream(stream: IO) -> AirportStore:
    """Build a store from a CSV stream with a header row.

    Binary streams are decoded as UTF-8, with undecodable bytes replaced.
    Blank lines are ignored. Rows without a usable id or IATA code are
    skipped; on duplicate IATA codes the first row is kept. Any read
    failure aborts the build with StructuralLoadError.
    """
    if isinstance(stream, io.TextIOBase):
        return _build_store(stream)

    text = io.TextIOWrapper(stream, encoding='utf-8-sig', errors='replace', newline='')
    try:
        return _build_store(text)
    finally:
        # Leave the caller's binary stream open.
        text.detach()


def _next_record(reader, where: str) -> Optional[List[str]]:
    """Return the next non-blank record, or None at end of stream."""
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return None
        except (csv.Error, OSError, UnicodeDecodeError) as exc:
            raise StructuralLoadError(f"{where} near line {reader.line_num}: {exc}") from exc
        if row:
            return row


def _build_store(text: IO[str]) -> AirportStore:
    reader = csv.reader(text, strict=True)

    header = _next_record(reader, "read header")
    if header is None:
        raise StructuralLoadError("read header: stream has no header row")

    column_index = build_column_index(header)
    by_iata: Dict[str, Airport] = {}

    while True:
        row = _next_record(reader, "read record")
        if row is None:
            break

        airport = parse_airport_row(row, column_index)
        if airport is None:
            continue
        if airport.iata_code not in by_iata:
            by_iata[airport.iata_code] = airport

    logger.debug("Indexed %s airports by IATA code", len(by_iata))
    return AirportStore(by_iata)


def load_from_file(path: Union[str, Path]) -> AirportStore:
    """Build a store from a CSV file on disk."""
    try:
        handle = open(path, 'r', encoding='utf-8-sig', errors='replace', newline='')
    except OSError as exc:
        raise StructuralLoadError(f"open airports csv {path}: {exc}") from exc

    with handle:
        return load_from_stream(handle)
