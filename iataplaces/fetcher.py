"""Download the OurAirports CSV and place it on disk atomically."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import httpx
import pandas as pd

from .config import DEFAULT_SOURCE_URL, LATEST_FILENAME
from .io_utils import atomic_copy, ensure_output_dirs, remove_temp_file, temp_path_for

REQUIRED_COLUMNS: Sequence[str] = ('id', 'iata_code')

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when the dataset could not be downloaded or stored."""
    pass


@dataclass(frozen=True)
class FetchResult:
    path: Path
    latest_path: Path
    bytes_written: int
    rows: int


def snapshot_filename(now: datetime) -> str:
    return f"airports-{now.astimezone(timezone.utc):%Y%m%d-%H%M%S}.csv"


def verify_airports_csv(path: Path, required_columns: Sequence[str] = REQUIRED_COLUMNS) -> int:
    """Parse the whole file and return its row count.

    Raises FetchError if the file is not readable CSV or lacks a required
    column, which is what a truncated or non-CSV download looks like.
    """
    try:
        df = pd.read_csv(
            path,
            encoding='utf-8-sig',
            encoding_errors='replace',
            dtype=str,
            keep_default_na=False,
            on_bad_lines='skip',
        )
    except (ValueError, OSError) as exc:
        raise FetchError(f"downloaded file {path} is not a readable CSV: {exc}") from exc

    columns = {str(col).strip() for col in df.columns}
    missing = [col for col in required_columns if col not in columns]
    if missing:
        raise FetchError(f"downloaded file {path} is missing column(s): {', '.join(missing)}")
    return len(df)


def _download(client: httpx.Client, url: str, dest: Path) -> int:
    written = 0
    with client.stream("GET", url) as response:
        if response.status_code != httpx.codes.OK:
            raise FetchError(f"unexpected status code {response.status_code} from {url}")
        with open(dest, 'wb') as handle:
            for chunk in response.iter_bytes():
                handle.write(chunk)
                written += len(chunk)
    return written


def fetch_airports(
    url: str = DEFAULT_SOURCE_URL,
    out_dir: Path = Path("data"),
    client: Optional[httpx.Client] = None,
    now: Optional[datetime] = None,
    timeout_seconds: float = 60.0,
    user_agent: str = "iataplaces/0.1",
) -> FetchResult:
    """Download ``url`` into ``out_dir`` as a timestamped CSV and refresh the latest copy."""
    out_dir = Path(out_dir)
    try:
        ensure_output_dirs([out_dir])
    except OSError as exc:
        raise FetchError(f"failed to create output dir {out_dir}: {exc}") from exc

    now = now or datetime.now(timezone.utc)
    full_path = out_dir / snapshot_filename(now)
    latest_path = out_dir / LATEST_FILENAME
    tmp_path = temp_path_for(full_path)

    logger.info("Downloading airports data from %s", url)

    owns_client = client is None
    if owns_client:
        client = httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    try:
        written = _download(client, url, tmp_path)
        rows = verify_airports_csv(tmp_path)
        os.replace(tmp_path, full_path)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        remove_temp_file(tmp_path)
        raise FetchError(f"failed to download airports CSV: {exc}") from exc
    except OSError as exc:
        remove_temp_file(tmp_path)
        raise FetchError(f"failed to write CSV to {full_path}: {exc}") from exc
    except FetchError:
        remove_temp_file(tmp_path)
        raise
    finally:
        if owns_client:
            client.close()

    logger.info("Saved airports CSV to %s (%s bytes, %s rows)", full_path, written, rows)

    try:
        atomic_copy(full_path, latest_path)
    except OSError as exc:
        raise FetchError(f"failed to update {latest_path}: {exc}") from exc
    logger.info("Updated %s", latest_path)

    return FetchResult(path=full_path, latest_path=latest_path, bytes_written=written, rows=rows)
