"""
Tests for frame sources.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from models.config import SourceConfig
from observation import (
    OpenCVSource,
    OpenCVSourceOptions,
    SyntheticSource,
    SyntheticSourceOptions,
    create_source_from_config,
)


class TestSyntheticSource:
    def test_yields_mock_frames(self):
        ticks = iter([1000.0, 1033.0, 1066.0])
        options = SyntheticSourceOptions(source_id="cam", max_frames=3, width=390, height=844)

        with SyntheticSource(options, clock=lambda: next(ticks)) as source:
            frames = list(source)

        assert [f.uri for f in frames] == ["mock://cam/frame_1", "mock://cam/frame_2", "mock://cam/frame_3"]
        assert [f.timestamp for f in frames] == [1000.0, 1033.0, 1066.0]
        assert all((f.width, f.height) == (390, 844) for f in frames)
        assert all(f.image is None for f in frames)
        assert source.is_exhausted
        assert not source.is_open

    def test_read_before_open(self):
        source = SyntheticSource(SyntheticSourceOptions())
        assert source.read() is None
        assert not source.is_exhausted

    def test_iterate_requires_open(self):
        source = SyntheticSource(SyntheticSourceOptions())
        with pytest.raises(RuntimeError):
            next(iter(source))

    def test_reopen_restarts_numbering(self):
        source = SyntheticSource(SyntheticSourceOptions(max_frames=1))
        source.open()
        source.read()
        source.close()
        source.open()
        assert source.read().frame_index == 1


class TestOpenCVSource:
    def _capture(self, frames):
        cap = MagicMock()
        cap.isOpened.return_value = True
        cap.read.side_effect = [(True, f) for f in frames] + [(False, None)]
        return cap

    def test_reads_frames_with_pixels(self):
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        cap = self._capture([image, image])
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(OpenCVSourceOptions(source_id="usb", device_id=0))
            source.open()
            first = source.read()
            second = source.read()

        assert first.image is image
        assert (first.width, first.height) == (640, 480)
        assert first.uri == "usb#frame=1"
        assert second.frame_index == 2

    def test_end_of_file_exhausts(self, tmp_path):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"")
        cap = self._capture([np.zeros((10, 10, 3), dtype=np.uint8)])
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(OpenCVSourceOptions(device_id=str(video)))
            source.open()
            assert source.read() is not None
            assert source.read() is None

        assert source.is_exhausted

    def test_camera_read_failure_is_not_exhaustion(self):
        cap = self._capture([])
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(OpenCVSourceOptions(device_id=0))
            source.open()
            assert source.read() is None

        assert not source.is_exhausted

    def test_open_failure_raises(self):
        cap = MagicMock()
        cap.isOpened.return_value = False
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(OpenCVSourceOptions(device_id=3, max_retries=1))
            with pytest.raises(RuntimeError):
                source.open()
        assert not source.is_open

    def test_close_releases_capture(self):
        cap = self._capture([])
        with patch("observation.opencv_source.cv2.VideoCapture", return_value=cap):
            source = OpenCVSource(OpenCVSourceOptions(device_id=0))
            source.open()
            source.close()
        cap.release.assert_called_once()
        assert source.get_video_info() == {}


class TestCreateSource:
    def test_synthetic(self):
        source = create_source_from_config(SourceConfig(kind="synthetic", width=320, height=240), max_frames=2)
        assert isinstance(source, SyntheticSource)
        with source:
            frames = list(source)
        assert len(frames) == 2
        assert (frames[0].width, frames[0].height) == (320, 240)

    def test_opencv_numeric_string_is_camera_index(self):
        source = create_source_from_config(SourceConfig(kind="opencv", device_id="2"))
        assert isinstance(source, OpenCVSource)
        assert source.device_id == 2

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            create_source_from_config(SourceConfig(kind="rtsp"))
