"""
Backtest report generator.

Produces from a ``BacktestReport``:
- a plain-text console summary
- a standalone HTML report with a summary table, the confidence-band
  breakdown, a matplotlib chart of profit by band and the latest bets

No external template engine required. Generates self-contained HTML.
"""

from __future__ import annotations

import base64
import html
import io
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from src.backtesting.types import BacktestReport


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "N/A"


def format_summary(report: BacktestReport) -> str:
    """Console summary of a backtest run."""
    earliest, latest = report.date_range
    lines: List[str] = [
        f"Backtest Results for {report.sport}",
        "=" * 43,
        f"   Period: {_fmt_date(earliest)} - {_fmt_date(latest)}",
        f"   Sample Size: {report.sample_size} games",
        f"   Bets Placed: {report.total_bets} ({report.contests_skipped} skipped)",
        f"   Wins: {report.wins} | Losses: {report.losses} | Pushes: {report.pushes}",
        f"   Win Rate: {report.win_rate:.1f}%",
        f"   Avg Odds: {report.avg_odds:.2f}",
        f"   Total Staked: ${report.total_staked:,.2f}",
        f"   Total Profit: ${report.total_profit:,.2f}",
        f"   ROI: {report.roi:.2f}%",
        f"   Final Bankroll: ${report.final_bankroll:,.2f}",
        f"   Max Drawdown: ${report.max_drawdown:,.2f} ({report.max_drawdown_pct:.1f}%)",
        f"   Brier Score: {report.brier_score:.4f}",
        "",
        "Performance by Confidence:",
    ]
    if not report.by_confidence:
        lines.append("   No bets placed")
    for band, stats in sorted(report.by_confidence.items()):
        lines.append(
            f"   {band * 100:.0f}-{(band + 0.1) * 100:.0f}%: {stats.bets} bets, "
            f"{stats.win_rate:.1f}% WR, ${stats.profit:,.2f}"
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Lightweight HTML builder
# ---------------------------------------------------------------------------

def _metric_row(label: str, value, fmt: str = ".4f") -> str:
    if value is None:
        return f"<tr><td>{html.escape(label)}</td><td>N/A</td></tr>"
    if isinstance(value, float):
        return f"<tr><td>{html.escape(label)}</td><td>{value:{fmt}}</td></tr>"
    return f"<tr><td>{html.escape(label)}</td><td>{html.escape(str(value))}</td></tr>"


def _band_chart_base64(report: BacktestReport) -> Optional[str]:
    """Base64-encoded PNG bar chart of profit per confidence band."""
    if not report.by_confidence:
        return None

    bands = sorted(report.by_confidence)
    profits = [report.by_confidence[b].profit for b in bands]
    colors = ["#16a34a" if p >= 0 else "#dc2626" for p in profits]

    fig, ax = plt.subplots(figsize=(8, 3))
    ax.bar([f"{b * 100:.0f}%" for b in bands], profits, color=colors)
    ax.axhline(0, color="#64748b", linewidth=0.8)
    ax.set_ylabel("Profit ($)")
    ax.set_xlabel("Confidence band")
    ax.set_title("Profit by Confidence Band")
    ax.grid(True, axis="y", alpha=0.3)
    fig.tight_layout()

    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=100)
    plt.close(fig)
    buf.seek(0)
    return base64.b64encode(buf.read()).decode()


def _band_table(report: BacktestReport) -> str:
    if not report.by_confidence:
        return "<p>No bets placed.</p>"
    rows = [
        f"<tr><td>{band * 100:.0f}-{(band + 0.1) * 100:.0f}%</td><td>{s.bets}</td>"
        f"<td>{s.wins}</td><td>{s.win_rate:.1f}%</td><td>${s.profit:,.2f}</td></tr>"
        for band, s in sorted(report.by_confidence.items())
    ]
    return (
        '<table class="tbl"><tr><th>Band</th><th>Bets</th><th>Wins</th>'
        "<th>Win Rate</th><th>Profit</th></tr>" + "\n".join(rows) + "</table>"
    )


def _bets_table(report: BacktestReport) -> str:
    if not report.recent_bets:
        return "<p>No bets placed.</p>"
    rows = [
        f"<tr><td>{_fmt_date(b.start_time)}</td>"
        f"<td>{html.escape(b.home_team)} vs {html.escape(b.away_team)}</td>"
        f"<td>{html.escape(b.predicted_winner)}</td><td>{b.result.value}</td>"
        f"<td>{b.confidence:.3f}</td><td>{b.odds:.2f}</td>"
        f"<td>${b.stake:,.2f}</td><td>${b.profit:,.2f}</td></tr>"
        for b in report.recent_bets
    ]
    return (
        '<table class="tbl"><tr><th>Date</th><th>Game</th><th>Pick</th><th>Result</th>'
        "<th>Confidence</th><th>Odds</th><th>Stake</th><th>Profit</th></tr>"
        + "\n".join(rows)
        + "</table>"
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_html_report(report: BacktestReport) -> str:
    """
    Generate a self-contained HTML report string from *report*.

    Returns:
        HTML string (UTF-8)
    """
    earliest, latest = report.date_range
    chart_b64 = _band_chart_base64(report)
    chart_section = (
        f'<img src="data:image/png;base64,{chart_b64}" '
        f'alt="Profit by confidence band" style="max-width:100%"/>'
        if chart_b64
        else ""
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>Backtest Report: {html.escape(report.sport)} ({html.escape(report.run_id)})</title>
<style>
  body {{ font-family: system-ui, sans-serif; max-width: 900px; margin: 2rem auto; color: #1e293b; }}
  h1 {{ color: #0f172a; }}
  h2 {{ border-bottom: 2px solid #e2e8f0; padding-bottom: 0.3rem; }}
  .tbl {{ border-collapse: collapse; width: 100%; margin: 1rem 0; }}
  .tbl th, .tbl td {{ border: 1px solid #cbd5e1; padding: 0.5rem 0.75rem; text-align: left; }}
  .tbl th {{ background: #f1f5f9; }}
  .meta {{ color: #64748b; font-size: 0.9rem; }}
</style>
</head>
<body>
<h1>Backtest Report</h1>
<p class="meta">
  Run ID: <strong>{html.escape(report.run_id)}</strong> |
  Sport: {html.escape(report.sport)} |
  Generated: {datetime.now().strftime("%Y-%m-%d %H:%M")} |
  Period: {_fmt_date(earliest)} &rarr; {_fmt_date(latest)} |
  Games: {report.sample_size}
</p>

<h2>Betting Performance</h2>
<table class="tbl">
{_metric_row("Total Bets", report.total_bets)}
{_metric_row("Wins / Losses / Pushes", f"{report.wins} / {report.losses} / {report.pushes}")}
{_metric_row("Win Rate %", report.win_rate, ".1f")}
{_metric_row("Average Odds", report.avg_odds, ".2f")}
{_metric_row("Total Staked", report.total_staked, ",.2f")}
{_metric_row("Total Profit", report.total_profit, ",.2f")}
{_metric_row("ROI %", report.roi, ".2f")}
</table>

<h2>Bankroll</h2>
<table class="tbl">
{_metric_row("Starting Bankroll", report.starting_bankroll, ",.2f")}
{_metric_row("Final Bankroll", report.final_bankroll, ",.2f")}
{_metric_row("Max Drawdown", report.max_drawdown, ",.2f")}
{_metric_row("Max Drawdown %", report.max_drawdown_pct, ".2f")}
</table>

<h2>Prediction Quality</h2>
<table class="tbl">
{_metric_row("Contests Evaluated", report.contests_evaluated)}
{_metric_row("Contests Skipped", report.contests_skipped)}
{_metric_row("Accuracy", report.accuracy)}
{_metric_row("Brier Score", report.brier_score)}
{_metric_row("Log Loss", report.log_loss)}
</table>

<h2>Performance by Confidence</h2>
{_band_table(report)}
{chart_section}

<h2>Latest Bets</h2>
{_bets_table(report)}
</body>
</html>"""


def save_report(report: BacktestReport, path: str) -> Path:
    """Generate and save report to *path*. Returns the Path written."""
    content = generate_html_report(report)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content, encoding="utf-8")
    return out
