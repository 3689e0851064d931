"""
Unit tests for clip_loader and dopesheet_export modules

Tests cover:
- JSON clip load/save
- Clip metadata
- Dopesheet and valley CSV export
"""

import csv
import json
import os

import numpy as np
import pytest

from keyframe_tool.engine.channel import AnimationClip
from keyframe_tool.engine.clip_loader import get_clip_metadata, load_clip, save_clip
from keyframe_tool.engine.dopesheet_export import export_dopesheet, export_valleys


@pytest.mark.unit
class TestClipLoader:
    """Test clip JSON files."""

    def test_save_and_load(self, sample_clip, temp_output_dir):
        path = os.path.join(temp_output_dir, "clips", "dance.json")

        save_clip(sample_clip, path)
        clip = load_clip(path)

        assert clip.name == "dance"
        assert len(clip.channels) == len(sample_clip.channels)
        np.testing.assert_array_equal(clip.channels[3].values, sample_clip.channels[3].values)

    def test_name_defaults_to_file_name(self, temp_output_dir):
        path = os.path.join(temp_output_dir, "walk.json")
        with open(path, "w") as f:
            json.dump({"channels": [{"name": "Hips.position", "times": [0], "values": [1, 2, 3]}]}, f)

        assert load_clip(path).name == "walk"

    def test_invalid_channel_raises(self, temp_output_dir):
        path = os.path.join(temp_output_dir, "bad.json")
        with open(path, "w") as f:
            json.dump({"channels": [{"name": "Spine.quaternion", "times": [0, 1], "values": [0, 0, 0, 1]}]}, f)

        with pytest.raises(ValueError):
            load_clip(path)

    def test_missing_file(self, temp_output_dir):
        with pytest.raises(FileNotFoundError):
            load_clip(os.path.join(temp_output_dir, "missing.json"))


@pytest.mark.unit
class TestClipMetadata:
    """Test metadata extraction."""

    def test_metadata(self, sample_clip):
        metadata = get_clip_metadata(sample_clip)

        assert metadata["has_animation"]
        assert metadata["frame_count"] == 60
        assert metadata["frame_rate"] == pytest.approx(30.0, rel=1e-3)
        assert metadata["channel_count"] == 13
        assert metadata["rotation_channel_count"] == 12
        assert metadata["vector_channel_count"] == 1
        assert metadata["bone_count"] == 12

    def test_empty_clip(self):
        assert get_clip_metadata(AnimationClip("empty")) == {"has_animation": False, "name": "empty"}


@pytest.mark.unit
class TestExports:
    """Test CSV exports."""

    def test_dopesheet(self, sample_clip, temp_output_dir, capsys):
        path = os.path.join(temp_output_dir, "dopesheet.csv")

        export_dopesheet(sample_clip, path)

        with open(path, "r") as f:
            rows = list(csv.reader(f))

        assert rows[0][:3] == ["Bone", "Component", "Frame_000"]
        assert len(rows[0]) == 62
        assert len(rows) == 1 + 13 * 4
        assert [row[1] for row in rows[1:5]] == ["Time", "Tx", "Ty", "Tz"]
        assert [row[1] for row in rows[5:9]] == ["Time", "Rx", "Ry", "Rz"]
        assert "Dopesheet exported" in capsys.readouterr().out

    def test_dopesheet_rotations_in_degrees(self, sample_clip, temp_output_dir):
        path = os.path.join(temp_output_dir, "dopesheet.csv")

        export_dopesheet(sample_clip, path)

        with open(path, "r") as f:
            rows = list(csv.reader(f))

        # Hips rotation x at frame 0: sin(0) * 0.6 rad
        assert float(rows[6][2]) == pytest.approx(0.0, abs=1e-3)
        assert float(rows[6][3]) == pytest.approx(np.degrees(np.sin(2 / 30) * 0.6), abs=1e-3)

    def test_valleys(self, temp_output_dir):
        path = os.path.join(temp_output_dir, "valleys.csv")

        export_valleys([(0, 4), (10, 12)], path, times=np.arange(20) / 10)

        with open(path, "r") as f:
            rows = list(csv.DictReader(f))

        assert rows[0]["frames"] == "5"
        assert float(rows[1]["end_time"]) == pytest.approx(1.2)
