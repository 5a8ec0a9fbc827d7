"""Command-line entry point"""
import pandas as pd

from cafesales import cli


def test_cli_writes_export(tmp_path, raw_csv, capsys):
    out = tmp_path / "clean.csv"
    code = cli.main([str(raw_csv), "--output", str(out), "--seed", "3", "--log-file", str(tmp_path / "run.log")])

    assert code == 0
    assert len(pd.read_csv(out)) == 5
    assert "dropped 1" in capsys.readouterr().out


def test_cli_reports_failure(tmp_path, capsys):
    code = cli.main([str(tmp_path / "missing.csv"), "--log-file", str(tmp_path / "run.log")])
    assert code == 1
    assert "Cleaning failed" in capsys.readouterr().err


def test_cli_default_output_path(tmp_path, raw_csv, monkeypatch):
    monkeypatch.setattr(cli.Config, "OUTPUT_FOLDER", str(tmp_path / "outputs"))
    code = cli.main([str(raw_csv), "--format", "xlsx", "--log-file", str(tmp_path / "run.log")])

    assert code == 0
    assert (tmp_path / "outputs" / "dirty_cafe_sales_clean.xlsx").exists()
