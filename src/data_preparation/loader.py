import io
import logging
from urllib.parse import urlparse

import pandas as pd
import requests

logger = logging.getLogger(__name__)


def is_url(path: str) -> bool:
    """Check if a string is a URL."""
    try:
        result = urlparse(path)
        return result.scheme in ("http", "https")
    except ValueError:
        return False


def download_csv(url: str, timeout: int = 30) -> str:
    """
    Download a CSV file from a URL.

    Parameters
    ----------
    url : str
        URL to download from.
    timeout : int
        Request timeout in seconds.

    Returns
    -------
    str
        CSV content as text.

    Raises
    ------
    RuntimeError
        If the download fails.
    """
    logger.info(f"Downloading CSV from {url}")
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise RuntimeError(f"Failed to download CSV from {url}: {e}") from e

    content_type = response.headers.get("Content-Type", "")
    if "csv" not in content_type and "text/plain" not in content_type:
        logger.warning(
            f"Content-Type '{content_type}' may not be CSV, attempting to parse anyway"
        )

    return response.text


def load_raw_dataset(source: str) -> pd.DataFrame:
    """
    Load the subject table with every value kept as text.

    Column names are taken verbatim from the source header. No schema
    validation happens here; see ``clean_dataset``.

    Parameters
    ----------
    source : str
        URL or local path of the CSV file.

    Returns
    -------
    pd.DataFrame
        Raw table, one column per source column, all values as ``str``.
    """
    if is_url(source):
        text = download_csv(source)
        raw = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    else:
        raw = pd.read_csv(source, dtype=str, keep_default_na=False)

    logger.info(f"Loaded {len(raw)} rows and {len(raw.columns)} columns from {source}")
    return raw
