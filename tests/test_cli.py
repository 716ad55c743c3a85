"""Tests for the command-line runner."""

import json

import pytest

from quakeframe.cli import build_parser, main


class TestParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.stories == 4
        assert args.material == "steel"
        assert args.mode_shape is None

    def test_mode_shape_parsing(self):
        args = build_parser().parse_args(["--mode-shape", "0.2,0.5,1.0"])
        assert args.mode_shape == [0.2, 0.5, 1.0]

    def test_soil_option_removed(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--soil", "C"])


class TestMain:
    def test_default_run(self, capsys):
        assert main(["--duration", "1.0", "--fps", "20"]) == 0
        out = capsys.readouterr().out
        assert "Base shear" in out
        assert "Story 4" in out

    def test_fallback_run(self, capsys):
        assert main(["--duration", "1.0", "--fallback", "--period", "0.5"]) == 0
        assert "spectral" in capsys.readouterr().out

    def test_invalid_geometry_exit_code(self):
        assert main(["--stories", "0"]) == 2

    def test_invalid_frame_rate_exit_code(self):
        assert main(["--duration", "0.5", "--fps", "0"]) == 2

    def test_missing_config_exit_code(self, tmp_path):
        assert main(["--config", str(tmp_path / "absent.json")]) == 2

    def test_save_outputs(self, tmp_path):
        code = main(
            [
                "--duration", "0.5",
                "--fps", "20",
                "--period", "0.5",
                "--mode-shape", "1,2,3,4",
                "--output-dir", str(tmp_path),
                "--save-results",
                "--save-fig",
                "--name", "cli",
            ]
        )
        assert code == 0
        meta = json.loads((tmp_path / "cli_meta.json").read_text())
        assert meta["modal"]["mode_shape"] == pytest.approx([0.25, 0.5, 0.75, 1.0])
        assert (tmp_path / "simulation_config.json").exists()
        assert (tmp_path / "figures" / "story_drifts.png").exists()

    def test_mode_shape_without_period(self):
        with pytest.raises(SystemExit):
            main(["--mode-shape", "1,2"])
