"""Tests for backtest console summary and HTML report generation."""

import pytest

from src.backtesting.backtester import BacktestRunner
from src.backtesting.report import format_summary, generate_html_report, save_report
from src.backtesting.types import BacktestConfig
from src.core.history_store import InMemoryHistoryStore


@pytest.fixture
def report(history_store, heuristic_model):
    return BacktestRunner(history_store, heuristic_model).run("basketball_nba")


@pytest.fixture
def empty_report(history_store, heuristic_model):
    return BacktestRunner(history_store, heuristic_model).run(
        "basketball_nba", BacktestConfig(min_confidence=0.95)
    )


def test_format_summary(report):
    summary = format_summary(report)
    assert summary.startswith("Backtest Results for basketball_nba")
    assert "Sample Size: 240 games" in summary
    assert f"Bets Placed: {report.total_bets}" in summary
    assert "Performance by Confidence:" in summary
    assert "% WR" in summary


def test_format_summary_no_bets(empty_report):
    summary = format_summary(empty_report)
    assert "Bets Placed: 0" in summary
    assert "No bets placed" in summary


def test_generate_html_report(report):
    html = generate_html_report(report)
    assert html.startswith("<!DOCTYPE html>")
    assert report.run_id in html
    assert "Performance by Confidence" in html
    assert "data:image/png;base64," in html
    assert "Latest Bets" in html


def test_html_escapes_team_names(history_factory, heuristic_model):
    history = history_factory(teams=["<A>", "B&C", "D", "E"])
    report = BacktestRunner(InMemoryHistoryStore(history), heuristic_model).run("basketball_nba")
    html = generate_html_report(report)
    if report.recent_bets:
        assert "&lt;A&gt;" in html or "B&amp;C" in html
    assert "<A>" not in html


def test_html_report_without_bets(empty_report):
    html = generate_html_report(empty_report)
    assert "No bets placed." in html
    assert "data:image/png" not in html


def test_save_report(report, tmp_path):
    out = save_report(report, str(tmp_path / "reports" / "backtest.html"))
    assert out.exists()
    assert out.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
