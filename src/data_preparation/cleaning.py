import logging
import re

import numpy as np
import pandas as pd

from src.data_preparation.config import (
    COLUMN_ALIASES,
    COLUMNS,
    GENDER,
    N_SEVERITY_LEVELS,
    NUMERIC_COLUMNS,
    SEVERITY_GROUP,
)

logger = logging.getLogger(__name__)


class SchemaMismatchError(ValueError):
    """Raised when the source table does not match the expected columns or levels."""

    pass


class HeaderArtifactError(ValueError):
    """Raised when the row expected to be a header artifact looks like data."""

    pass


def _normalize(name: str) -> str:
    return re.sub(r"\s+", " ", str(name)).strip().casefold()


def select_columns(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Select the analysis columns by name and rename them to their canonical names.

    Source headers are compared after case-folding and whitespace collapsing,
    against each canonical name and its aliases in ``COLUMN_ALIASES``.

    Raises
    ------
    SchemaMismatchError
        If a column is missing, or more than one source header matches it.
    """
    normalized = {}
    for header in raw.columns:
        normalized.setdefault(_normalize(header), []).append(header)

    rename = {}
    missing = []
    errors = []
    for column in COLUMNS:
        candidates = [_normalize(column)] + [_normalize(a) for a in COLUMN_ALIASES.get(column, [])]
        matches = [h for c in candidates for h in normalized.get(c, [])]
        if not matches:
            missing.append(column)
        elif len(matches) > 1:
            errors.append(f"column '{column}' is ambiguous, matched {matches}")
        else:
            rename[matches[0]] = column

    if missing:
        errors.insert(0, f"missing columns {missing}")
    if errors:
        raise SchemaMismatchError(
            "Source table does not match the expected schema: "
            + "; ".join(errors)
            + f". Available columns: {list(raw.columns)}"
        )

    selected = raw[list(rename.keys())].rename(columns=rename)
    return selected[COLUMNS]


def is_header_artifact(row: pd.Series) -> bool:
    """Return True if none of the numeric cells of ``row`` parse as a number."""
    values = pd.to_numeric(row[NUMERIC_COLUMNS], errors="coerce")
    return bool(values.isna().all())


def drop_header_artifact(df: pd.DataFrame) -> pd.DataFrame:
    """
    Drop the first row after checking that it is a header artifact.

    Raises
    ------
    HeaderArtifactError
        If the table is empty or the first row holds numeric data.
    """
    if df.empty:
        raise HeaderArtifactError("Table is empty, no header artifact row to drop")

    first = df.iloc[0]
    if not is_header_artifact(first):
        raise HeaderArtifactError(
            f"First data row looks like subject data, refusing to drop it: {first.to_dict()}"
        )

    logger.debug(f"Dropping header artifact row: {first.to_dict()}")
    return df.iloc[1:]


def coerce_numeric(df: pd.DataFrame) -> pd.DataFrame:
    """
    Convert every numeric column to float.

    Cells that fail to parse become NaN; no row is removed.
    """
    out = df.copy()
    for column in NUMERIC_COLUMNS:
        text = out[column].fillna("").astype(str).str.strip()
        coerced = pd.to_numeric(text, errors="coerce").astype(float)
        n_failed = int((coerced.isna() & text.ne("")).sum())
        if n_failed:
            logger.debug(f"{column}: {n_failed} value(s) could not be parsed and are set to NaN")
        out[column] = coerced
    return out


def to_categorical(df: pd.DataFrame, severity_levels=None) -> pd.DataFrame:
    """
    Convert Gender and Severity group to categorical columns.

    Parameters
    ----------
    df : pd.DataFrame
        Table with canonical column names.
    severity_levels : list of str, optional
        Ordered severity labels. If None, the observed labels are used in
        sorted order.

    Returns
    -------
    pd.DataFrame
        Copy of ``df`` with categorical Gender and Severity group.

    Raises
    ------
    SchemaMismatchError
        If Severity group does not have exactly three levels, or holds a value
        outside ``severity_levels``.
    """
    out = df.copy()

    severity = out[SEVERITY_GROUP].fillna("").astype(str).str.strip().replace("", np.nan)
    observed = sorted(severity.dropna().unique())

    if severity_levels is None:
        levels = observed
    else:
        levels = list(severity_levels)
        unexpected = [v for v in observed if v not in levels]
        if unexpected:
            raise SchemaMismatchError(
                f"Unexpected {SEVERITY_GROUP} values {unexpected}, expected one of {levels}"
            )

    if len(levels) != N_SEVERITY_LEVELS:
        raise SchemaMismatchError(
            f"{SEVERITY_GROUP} must have exactly {N_SEVERITY_LEVELS} levels, found {levels}"
        )

    out[SEVERITY_GROUP] = pd.Categorical(severity, categories=levels)

    gender = out[GENDER].fillna("").astype(str).str.strip().replace("", np.nan)
    out[GENDER] = pd.Categorical(gender)
    n_gender = len(out[GENDER].cat.categories)
    if n_gender != 2:
        logger.warning(f"{GENDER} has {n_gender} levels, expected 2")

    return out


def clean_dataset(
    raw: pd.DataFrame,
    severity_levels=None,
    expect_header_artifact: bool = True,
) -> pd.DataFrame:
    """
    Turn the raw text table into the typed subject table.

    Steps: select and rename columns, drop the header artifact row, coerce
    numeric columns, and convert categoricals.

    Parameters
    ----------
    raw : pd.DataFrame
        Output of ``load_raw_dataset``.
    severity_levels : list of str, optional
        Ordered severity labels, see ``to_categorical``.
    expect_header_artifact : bool, optional
        Whether the first data row is a header artifact to validate and drop.
        Defaults to True.

    Returns
    -------
    pd.DataFrame
        Cleaned table with a fresh RangeIndex.
    """
    df = select_columns(raw)
    if expect_header_artifact:
        df = drop_header_artifact(df)
    df = coerce_numeric(df)
    df = to_categorical(df, severity_levels=severity_levels)
    df = df.reset_index(drop=True)

    counts = df[SEVERITY_GROUP].value_counts(sort=False).to_dict()
    logger.info(f"Cleaned dataset: {len(df)} subjects, per group: {counts}")
    return df
