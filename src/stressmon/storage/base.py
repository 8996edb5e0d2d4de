"""
Abstract base class for artifact storage implementations.

This module defines the DataStorage abstract base class which serves as the
interface for every storage backend. A counters collector writes its data
artifacts through this interface:

- JSON documents for series maps, process metadata and statistics
- DataFrames for the long-format sample table

Artifacts are write-only from the collector's side; readers consume the
files directly.
"""

from abc import ABC, abstractmethod
from typing import Any
import polars as pl


class DataStorage(ABC):
    """Abstract base class for data storage implementations."""

    @abstractmethod
    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        """
        Save a Polars DataFrame to the specified path.

        Args:
            df: Polars DataFrame to save
            path: File path to save to
        """
        pass

    @abstractmethod
    def save_json(self, data: Any, path: str) -> None:
        """
        Save a JSON-serializable value to the specified path.

        Args:
            data: Dictionary, list or scalar to save
            path: File path to save to
        """
        pass
