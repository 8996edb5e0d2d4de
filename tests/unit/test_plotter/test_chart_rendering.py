"""
Unit tests for chart normalisation and rendering.
"""

from unittest.mock import patch

import plotly.graph_objects as go
import pytest

from stressmon.plotter import (
    CHART_HEIGHT,
    CHART_WIDTH,
    LineData,
    build_chart_figure,
    image_format,
    normalize_line,
    write_chart_to_file,
)


@pytest.mark.unit
class TestNormalizeLine:
    """Test cases for 0..100 line rescaling."""

    def test_varying_line(self):
        label, ys = normalize_line(LineData("memory(bytes)", [100, 150, 300]))

        assert ys == pytest.approx([0.0, 25.0, 100.0])
        assert label == "memory(bytes):1%=2.00 & zero at:100."

    def test_constant_line_drawn_flat(self):
        with patch("stressmon.plotter.random.randint", return_value=17):
            label, ys = normalize_line(LineData("cpu(%)", [5.0, 5.0, 5.0]))

        assert ys == [17, 17, 17]
        assert label == "cpu(%):17.0%=5.0 & zero at:0"

    def test_constant_line_height_in_range(self):
        for _ in range(20):
            _, ys = normalize_line(LineData("c", [3, 3]))
            assert 1 <= ys[0] <= 50

    def test_gaps_are_preserved(self):
        _, ys = normalize_line(LineData("ctime(ms)", [0, None, 10]))
        assert ys == [0.0, None, 100.0]

    def test_empty_line(self):
        assert normalize_line(LineData("x", [])) is None
        assert normalize_line(LineData("x", [None, None])) is None


@pytest.mark.unit
class TestFigure:
    """Test cases for figure construction."""

    def test_image_format(self):
        assert image_format("png") == "png"
        assert image_format("JPG") == "jpeg"
        assert image_format("jpeg") == "jpeg"
        assert image_format("gif") == "png"
        assert image_format(None) == "png"

    def test_one_trace_per_line_and_x_from_zero(self):
        fig = build_chart_figure(
            [1000, 1100, 1200],
            [LineData("cpu(%)", [1, 2, 3]), LineData("memory(bytes)", [10, 20, 30])],
            start_timestamp=1000,
            x_axis_label="timestamp(ms)",
            title="run__Totals",
        )

        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 2
        assert list(fig.data[0].x) == [0, 100, 200]
        assert fig.layout.xaxis.title.text.startswith("timestamp(ms), Start time:")
        assert fig.layout.title.text == "run__Totals"
        assert fig.layout.width == CHART_WIDTH
        assert fig.layout.height == CHART_HEIGHT

    def test_lines_without_values_are_skipped(self):
        fig = build_chart_figure([0, 1], [LineData("ctime(ms)", [None, None]), LineData("cpu(%)", [1, 2])])
        assert len(fig.data) == 1

    def test_no_lines(self):
        fig = build_chart_figure([], [])
        assert len(fig.data) == 0


@pytest.mark.unit
class TestWriteChart:
    """Test cases for image output and the HTML fallback."""

    def test_writes_image_bytes(self, temp_dir):
        target = temp_dir / "charts" / "run_chart.png"

        with patch.object(go.Figure, "to_image", return_value=b"PNGDATA") as mock_to_image:
            image = write_chart_to_file([0, 1], [LineData("cpu(%)", [1, 2])], file=str(target))

        assert image == b"PNGDATA"
        assert target.read_bytes() == b"PNGDATA"
        assert mock_to_image.call_args.kwargs["format"] == "png"

    def test_returns_bytes_without_file(self):
        with patch.object(go.Figure, "to_image", return_value=b"JPEGDATA"):
            image = write_chart_to_file([0, 1], [LineData("cpu(%)", [1, 2])], file_type="jpg")
        assert image == b"JPEGDATA"

    def test_falls_back_to_html(self, temp_dir, caplog):
        target = temp_dir / "run_chart.png"

        with patch.object(go.Figure, "to_image", side_effect=RuntimeError("no kaleido")):
            image = write_chart_to_file([0, 1], [LineData("cpu(%)", [1, 2])], file=str(target))

        assert image is None
        assert not target.exists()
        assert (temp_dir / "run_chart.html").exists()
        assert "Failed to render static chart" in caplog.text
