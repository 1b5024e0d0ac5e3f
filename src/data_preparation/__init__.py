"""Loading and cleaning of the glaucoma MR spectroscopy subject table."""

from src.data_preparation.cleaning import (
    HeaderArtifactError,
    SchemaMismatchError,
    clean_dataset,
    coerce_numeric,
    drop_header_artifact,
    is_header_artifact,
    select_columns,
    to_categorical,
)
from src.data_preparation.loader import download_csv, is_url, load_raw_dataset

__all__ = [
    # Loading
    "load_raw_dataset",
    "download_csv",
    "is_url",
    # Cleaning
    "clean_dataset",
    "select_columns",
    "drop_header_artifact",
    "is_header_artifact",
    "coerce_numeric",
    "to_categorical",
    # Errors
    "SchemaMismatchError",
    "HeaderArtifactError",
]
