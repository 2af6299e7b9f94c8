"""
Tests for the regionizer command line.
"""

import pytest
import subprocess
import sys
import os
import json
import cv2
import numpy as np

from regionizer.cli import main, setup_argparse, build_config
from tests.fixtures.regionizer_fixtures import (
    write_image,
    dot_on_background,
    vertical_split,
    BLACK,
    WHITE,
)


def run_cli(*args):
    return subprocess.run(
        [sys.executable, "-m", "regionizer", *args],
        capture_output=True,
        text=True,
        cwd=os.path.dirname(os.path.dirname(__file__)),
    )


class TestRegionizerCLI:
    """Tests for running the module as a program."""

    @pytest.fixture
    def test_image_path(self, tmp_path):
        """Create a test image file."""
        image_path = write_image(tmp_path / "test_image.png", dot_on_background(size=(7, 7)))
        yield str(image_path)

    def test_writes_regionized_file(self, test_image_path, tmp_path):
        """Test that the mask is written next to the input."""
        result = run_cli(test_image_path)

        assert result.returncode == 0
        output_path = tmp_path / "test_image_regionized.png"
        assert output_path.exists()
        assert str(output_path) in result.stdout

        mask = cv2.imread(str(output_path))
        assert mask.shape == (7, 7, 3)
        assert np.count_nonzero(np.all(mask == 0, axis=2)) == 5

    def test_invalid_path_returns_error(self):
        """Test that a missing image returns exit code 1."""
        result = run_cli("nonexistent.png")

        assert result.returncode == 1
        assert "Error" in result.stderr

    def test_no_extension_returns_error(self, tmp_path):
        """Test that a path without an extension is rejected."""
        result = run_cli(str(tmp_path / "image"))

        assert result.returncode == 1
        assert "Error" in result.stderr
        assert os.listdir(tmp_path) == []

    def test_json_output(self, test_image_path):
        """Test that --json prints a parseable summary."""
        result = run_cli(test_image_path, "--json")

        assert result.returncode == 0
        output = json.loads(result.stdout)
        assert output["region_count"] == 2
        assert output["border_pixel_count"] == 5
        assert output["output_path"].endswith("test_image_regionized.png")

    def test_help_lists_options(self):
        """Test that --help documents the options."""
        result = run_cli("--help")

        assert result.returncode == 0
        assert "--threshold" in result.stdout
        assert "image_path" in result.stdout

    def test_missing_argument(self):
        """Test that running without an image is a usage error."""
        result = run_cli()

        assert result.returncode != 0
        assert "image_path" in result.stderr

    def test_negative_threshold(self, test_image_path):
        """Test that an invalid threshold is reported as a configuration error."""
        result = run_cli(test_image_path, "--threshold", "-1")

        assert result.returncode == 1
        assert "Invalid configuration" in result.stderr


class TestMainInProcess:
    """Tests for calling main() directly."""

    def test_returns_zero(self, tmp_path, capsys):
        """Test the success path and its message."""
        image_path = write_image(tmp_path / "split.png", vertical_split(BLACK, WHITE))

        exit_code = main([str(image_path)])

        assert exit_code == 0
        assert "Border mask saved to" in capsys.readouterr().out
        assert (tmp_path / "split_regionized.png").exists()

    def test_regions_output(self, tmp_path):
        """Test that --regions-output writes a second image."""
        image_path = write_image(tmp_path / "split.png", vertical_split(BLACK, WHITE))
        regions_path = tmp_path / "regions.png"

        exit_code = main([str(image_path), "--regions-output", str(regions_path)])

        assert exit_code == 0
        assert regions_path.exists()

    def test_undecodable_image(self, tmp_path, capsys):
        """Test that a corrupt file is reported and nothing is written."""
        image_path = tmp_path / "broken.png"
        image_path.write_text("garbage")

        exit_code = main([str(image_path)])

        assert exit_code == 1
        assert "Error" in capsys.readouterr().err
        assert not (tmp_path / "broken_regionized.png").exists()

    def test_missing_config_file(self, tmp_path, capsys):
        """Test that an unreadable config file is a configuration error."""
        image_path = write_image(tmp_path / "split.png", vertical_split(BLACK, WHITE))

        exit_code = main([str(image_path), "--config", str(tmp_path / "missing.yaml")])

        assert exit_code == 1
        assert "Invalid configuration" in capsys.readouterr().err

    @pytest.mark.parametrize("content", ["regionizer: 5\n", "regionizer:\n"])
    def test_config_section_not_a_mapping(self, tmp_path, capsys, content):
        """Test that a malformed regionizer section is reported, not raised."""
        image_path = write_image(tmp_path / "split.png", vertical_split(BLACK, WHITE))
        config_path = tmp_path / "regionizer.yaml"
        config_path.write_text(content)

        exit_code = main([str(image_path), "--config", str(config_path)])

        assert exit_code == 1
        assert "Invalid configuration" in capsys.readouterr().err
        assert not (tmp_path / "split_regionized.png").exists()

    def test_regions_output_failure_leaves_no_mask(self, tmp_path, capsys):
        """Test that an unwritable region map target fails the run with no mask written."""
        image_path = write_image(tmp_path / "in.png", vertical_split(BLACK, WHITE))

        exit_code = main([str(image_path), "--regions-output", str(tmp_path / "nodir" / "r.png")])

        assert exit_code == 1
        assert "Error" in capsys.readouterr().err
        assert not (tmp_path / "in_regionized.png").exists()


class TestBuildConfig:
    """Tests for combining config files and flags."""

    def test_defaults(self):
        """Test that no flags gives the default config."""
        args = setup_argparse().parse_args(["image.png"])

        config = build_config(args)

        assert config.threshold == 5.0
        assert config.merge_strategy == "member_list"
        assert config.flag_scan_origin is False

    def test_flags_override_file(self, tmp_path):
        """Test that command-line flags win over the config file."""
        config_path = tmp_path / "regionizer.yaml"
        config_path.write_text("threshold: 9.0\nmerge_strategy: disjoint_set\n")
        args = setup_argparse().parse_args(
            ["image.png", "--config", str(config_path), "--threshold", "2.5", "--flag-scan-origin"]
        )

        config = build_config(args)

        assert config.threshold == 2.5
        assert config.merge_strategy == "disjoint_set"
        assert config.flag_scan_origin is True
