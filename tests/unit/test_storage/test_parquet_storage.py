"""
Unit tests for Parquet storage implementation.
"""

import json

import polars as pl
import pytest

from stressmon.storage.parquet_storage import ParquetStorage


class TestParquetStorage:
    """Test cases for ParquetStorage class."""

    def test_initialization(self):
        """Test ParquetStorage initialization."""
        assert ParquetStorage().compression == "snappy"
        assert ParquetStorage(compression="gzip").compression == "gzip"

    def test_save_dataframe(self, temp_dir):
        """Test saving a sample table into a nested directory."""
        storage = ParquetStorage()
        df = pl.DataFrame(
            {
                "pid": [200, 200, 300],
                "ppid": [100, 100, 200],
                "tick": [0, 1, 0],
                "cpu": [1.0, 2.5, 0.0],
                "memory": [2000.0, 2001.0, 3000.0],
            }
        )
        file_path = temp_dir / "nested" / "run_samples.parquet"

        storage.save_dataframe(df, str(file_path))

        assert file_path.exists()
        assert pl.read_parquet(file_path).equals(df)

    def test_save_json(self, temp_dir):
        """Test JSON documents such as statistics and process lists."""
        storage = ParquetStorage()
        stats_path = temp_dir / "out" / "run_statistics.json"
        stats = {"primaryMetric": "MemoryMetric", "iterations": [1, 2, 3]}

        storage.save_json(stats, str(stats_path))

        with open(stats_path, encoding="utf-8") as f:
            assert json.load(f) == stats

        list_path = temp_dir / "run_processInfo.json"
        storage.save_json([{"pid": 1, "name": "init"}], str(list_path))
        assert json.loads(list_path.read_text(encoding="utf-8")) == [{"pid": 1, "name": "init"}]

    def test_unserializable_json_raises(self, temp_dir, caplog):
        """Test that a failed write is logged and re-raised."""
        storage = ParquetStorage()

        with pytest.raises(TypeError):
            storage.save_json({"when": object()}, str(temp_dir / "bad.json"))

        assert "Failed to save JSON" in caplog.text
