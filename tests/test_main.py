"""
Smoke test for the CLI entry point.
"""

import sys

import pytest

import main


def test_runs_synthetic_pipeline_for_duration(temp_config_dir, tmp_path, monkeypatch):
    (temp_config_dir / "config.yaml").write_text(
        f"log_path: {tmp_path / 'logs' / 'run.log'}\nbackend:\n  seed: 1\n"
    )
    monkeypatch.setattr(sys, "argv", [
        "main.py", "--config", str(temp_config_dir / "config.yaml"),
        "--source", "synthetic", "--duration", "0.2",
    ])

    main.main()

    assert (tmp_path / "logs" / "run.log").exists()


def test_invalid_config_exits(temp_config_dir, monkeypatch):
    (temp_config_dir / "config.yaml").write_text("frames:\n  max_concurrent: 0\n")
    monkeypatch.setattr(sys, "argv", ["main.py", "--config", str(temp_config_dir / "config.yaml")])

    with pytest.raises(SystemExit) as exc:
        main.main()

    assert exc.value.code == 1
