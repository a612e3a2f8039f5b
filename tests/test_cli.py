"""
Tests for the parallel-kmeans command-line demo.
"""

import pytest

from parallel_kmeans.cli import build_parser, main


def test_parser_defaults(env_defaults):
    env_defaults(KMEANS_NUM_THREADS="3", KMEANS_DISTANCE="l1")
    args = build_parser().parse_args([])
    assert args.samples == 500
    assert args.k == 5
    assert args.threads == 3
    assert args.distance == "l1"


def test_parser_rejects_unknown_distance():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--distance", "hamming"])


def test_main_trains_and_reports(capsys):
    code = main(
        ["--samples", "120", "--k", "5", "--threads", "2", "--init", "plusplus",
         "--log-level", "WARNING"]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "k=5" in out
    assert "centroid 4:" in out
    assert "Normalized Mutual Information:" in out
    assert "Adjusted Mutual Information:" in out


def test_main_reports_insufficient_data(capsys):
    code = main(["--samples", "3", "--k", "5", "--log-level", "WARNING"])
    err = capsys.readouterr().err
    assert code == 2
    assert "[ERROR]" in err
    assert "cannot exceed" in err


def test_main_reports_invalid_config(capsys):
    code = main(["--samples", "10", "--k", "0", "--log-level", "WARNING"])
    assert code == 2
    assert "k must be >= 1" in capsys.readouterr().err


def test_main_reports_unknown_log_level(capsys):
    code = main(["--samples", "20", "--k", "2", "--log-level", "chatty"])
    err = capsys.readouterr().err
    assert code == 2
    assert "[ERROR] Unknown log level: CHATTY" in err
