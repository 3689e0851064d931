"""
Integration tests for the command-line entry point.

Runs main() against temporary clip and parameter files and checks the
generated output directory.
"""

import json
import os

import pytest

from keyframe_tool.cli import build_parser, main, process_clip
from keyframe_tool.engine.clip_loader import load_clip, save_clip
from keyframe_tool.engine.config import Params


@pytest.fixture
def clip_file(sample_clip, temp_output_dir):
    path = os.path.join(temp_output_dir, "dance.json")
    save_clip(sample_clip, path)
    return path


@pytest.fixture
def params_file(temp_output_dir):
    path = os.path.join(temp_output_dir, "params.json")
    with open(path, "w") as f:
        json.dump({"energy": {"upper": 2.0}, "rotations": {"z": 0.0}, "curve": {"equation": "gaussian"}}, f)
    return path


@pytest.mark.integration
class TestCLI:
    """Test the batch CLI."""

    def test_parser_defaults(self):
        args = build_parser().parse_args(["clip.json"])

        assert args.clips == ["clip.json"]
        assert args.params is None
        assert args.time is None
        assert args.lengthen == 0
        assert args.output == "output"
        assert not args.plot

    def test_main_writes_outputs(self, clip_file, params_file, temp_output_dir):
        output = os.path.join(temp_output_dir, "out")

        code = main([clip_file, "--params", params_file, "--output", output])

        assert code == 0
        clip_dir = os.path.join(output, "dance")
        assert os.path.exists(os.path.join(clip_dir, "processed_clip.json"))
        assert os.path.exists(os.path.join(clip_dir, "dopesheet.csv"))
        assert not os.path.exists(os.path.join(clip_dir, "errors.log"))

        with open(os.path.join(clip_dir, "summary.json"), "r") as f:
            summary = json.load(f)
        assert summary["updated_channels"] == 13
        assert summary["errors"] == []
        assert summary["processed_duration"] == pytest.approx(59 / 30)

    def test_processed_clip_reflects_params(self, clip_file, params_file, temp_output_dir):
        output = os.path.join(temp_output_dir, "out")

        main([clip_file, "--params", params_file, "--output", output])
        processed = load_clip(os.path.join(output, "dance", "processed_clip.json"))

        head = processed.find("Head.quaternion")
        foot = processed.find("LeftFoot.quaternion")
        assert head.times[-1] == pytest.approx(59 / 60, rel=1e-5)
        assert foot.times[-1] == pytest.approx(59 / 30, rel=1e-5)

    def test_lengthen_and_plot(self, clip_file, temp_output_dir):
        output = os.path.join(temp_output_dir, "out")

        code = main([clip_file, "--lengthen", "1", "--plot", "--output", output])

        assert code == 0
        clip_dir = os.path.join(output, "dance")
        assert os.path.exists(os.path.join(clip_dir, "valleys.png"))
        assert os.path.exists(os.path.join(clip_dir, "first_rotation.png"))
        assert load_clip(os.path.join(clip_dir, "processed_clip.json")).channels[0].frame_count == 120

    def test_missing_file(self, temp_output_dir, capsys):
        code = main([os.path.join(temp_output_dir, "missing.json")])

        assert code == 1
        assert "File not found" in capsys.readouterr().out

    def test_invalid_params_file(self, clip_file, temp_output_dir):
        code = main([clip_file, "--params", os.path.join(temp_output_dir, "nope.json")])

        assert code == 1

    def test_invalid_clip_fails(self, temp_output_dir):
        path = os.path.join(temp_output_dir, "broken.json")
        with open(path, "w") as f:
            f.write("{not json")

        assert process_clip(path, Params(), output_root=os.path.join(temp_output_dir, "out")) is None
        assert main([path, "--output", os.path.join(temp_output_dir, "out")]) == 1
