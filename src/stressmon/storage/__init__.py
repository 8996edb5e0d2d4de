"""
Storage backends for run artifacts.

Collectors write counter series, process metadata, statistics and sample
tables through the DataStorage interface. ParquetStorage stores
frames as Parquet (via Polars) and documents as JSON.
"""

from .base import DataStorage
from .parquet_storage import ParquetStorage
from .factory import create_storage

__all__ = ["DataStorage", "ParquetStorage", "create_storage"]
