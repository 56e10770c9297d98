"""HTML report generation for frame mapping outputs."""

from __future__ import annotations

import argparse
import json
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Dict, Iterable

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import plotly.io as pio

from .cli import OUTPUT_BLOCKS, OUTPUT_MAPPING, OUTPUT_SUMMARY
from .synchronizer import UNAVAILABLE_FRAME

DEFAULT_REPORT_NAME = "frame_sync_report.html"


def _read_mapping(output_dir: Path) -> pd.DataFrame:
    mapping_path = output_dir / OUTPUT_MAPPING
    if not mapping_path.exists():
        return pd.DataFrame(columns=["composite_frame", "block", "eye_frame", "scene_frame"])
    return pd.read_csv(mapping_path)


def _read_blocks(output_dir: Path) -> pd.DataFrame:
    blocks_path = output_dir / OUTPUT_BLOCKS
    if not blocks_path.exists():
        return pd.DataFrame()
    return pd.read_csv(blocks_path, dtype="Int64")


def _read_summary(output_dir: Path) -> Dict[str, object]:
    summary_path = output_dir / OUTPUT_SUMMARY
    if not summary_path.exists():
        return {}
    with summary_path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def _render_mapping_chart(mapping: pd.DataFrame, blocks: pd.DataFrame) -> str:
    if mapping.empty:
        return "<p class=\"empty\">No frame mapping was found.</p>"

    fig = go.Figure()
    for column, name, color in (
        ("eye_frame", "Eye frame", "#2563eb"),
        ("scene_frame", "Scene frame", "#f97316"),
    ):
        values = mapping[column].astype(float).where(mapping[column] != UNAVAILABLE_FRAME, np.nan)
        fig.add_trace(
            go.Scatter(
                x=mapping["composite_frame"],
                y=values,
                mode="lines",
                name=name,
                line=dict(color=color),
                connectgaps=False,
                hovertemplate="Composite: %{x}<br>Frame: %{y}<extra>" + name + "</extra>",
            )
        )

    if not blocks.empty and "start" in blocks.columns:
        first = int(mapping["composite_frame"].min())
        last = int(mapping["composite_frame"].max())
        for start in blocks["start"].dropna():
            if first < int(start) <= last:
                fig.add_vline(x=int(start), line_dash="dot", line_color="#6b7280")

    fig.update_layout(
        title="Stream frames by composite frame",
        xaxis_title="Composite frame",
        yaxis_title="Stream frame",
        template="plotly_white",
        height=460,
        hovermode="x unified",
        margin=dict(l=40, r=20, t=60, b=60),
    )
    chart_html = pio.to_html(
        fig,
        include_plotlyjs=True,
        full_html=False,
        default_width="100%",
        default_height=460,
    )
    return chart_html


def _render_blocks_table(blocks: pd.DataFrame) -> str:
    if blocks.empty:
        return "<p class=\"empty\">No sync blocks were found.</p>"
    display = blocks.astype(object).where(blocks.notna(), "open")
    return display.to_html(index=False, classes="data-table")


def _render_gaps_table(summary: Dict[str, object]) -> str:
    rows = []
    for stream in ("eye", "scene"):
        for start, end in summary.get(f"{stream}_gaps", []):
            rows.append({"stream": stream, "start_frame": start, "end_frame": end, "frames": end - start + 1})
    if not rows:
        return "<p class=\"empty\">Both streams have a frame at every composite position.</p>"
    return pd.DataFrame(rows).to_html(index=False, classes="data-table compact")


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang=\"en\">
<head>
<meta charset=\"utf-8\" />
<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
<title>{title}</title>
<style>
    body {{
        font-family: 'Segoe UI', sans-serif;
        margin: 0;
        background: #f3f4f6;
        color: #1f2933;
    }}
    header {{
        background: linear-gradient(135deg, #1e3a8a, #2563eb);
        color: white;
        padding: 32px 20px;
    }}
    header h1 {{
        margin: 0 0 8px 0;
        font-size: 2rem;
    }}
    main {{
        max-width: 1200px;
        margin: 0 auto;
        padding: 24px;
    }}
    section {{
        background: white;
        border-radius: 16px;
        padding: 24px;
        margin-bottom: 24px;
        box-shadow: 0 10px 25px rgba(15, 23, 42, 0.08);
    }}
    .table-wrapper {{
        overflow-x: auto;
    }}
    table {{
        border-collapse: collapse;
        width: 100%;
    }}
    th, td {{
        border: 1px solid #e5e7eb;
        padding: 8px 12px;
        text-align: right;
    }}
    th {{
        background: #e0e7ff;
        text-align: center;
    }}
    .data-table.compact td {{
        padding: 6px 8px;
    }}
    .empty {{
        font-style: italic;
        color: #6b7280;
    }}
    footer {{
        padding: 16px 20px 32px;
        text-align: center;
        color: #6b7280;
        font-size: 0.9rem;
    }}
</style>
</head>
<body>
<header>
    <h1>{title}</h1>
    <p>{summary}</p>
    <p class=\"generated\">Generated on {generated_at}</p>
</header>
<main>
    <section>
        <h2>Frame Mapping</h2>
        <div class=\"chart\">{mapping_chart}</div>
    </section>
    <section>
        <h2>Sync Blocks</h2>
        <div class=\"table-wrapper\">{blocks_table}</div>
    </section>
    <section>
        <h2>Unavailable Frames</h2>
        <div class=\"table-wrapper\">{gaps_table}</div>
    </section>
</main>
<footer>
    Source directory: {output_directory}
</footer>
</body>
</html>
"""


def generate_report(
    output_dir: Path,
    *,
    html_path: Path | None = None,
    title: str = "Frame Synchronization Report",
) -> Path:
    """Generate an interactive HTML report from CLI output files."""

    output_dir = Path(output_dir)
    mapping_df = _read_mapping(output_dir)
    blocks_df = _read_blocks(output_dir)
    summary = _read_summary(output_dir)

    mapping_chart = _render_mapping_chart(mapping_df, blocks_df)

    total = int(summary.get("total_frames", len(mapping_df)))
    summary_text = (
        f"Mapped <strong>{total}</strong> composite frames across "
        f"<strong>{len(blocks_df)}</strong> sync blocks"
    )
    if summary:
        summary_text += (
            f" (eye {float(summary.get('eye_coverage', 0.0)):.1%}, "
            f"scene {float(summary.get('scene_coverage', 0.0)):.1%} available)."
        )
    else:
        summary_text += "."

    html_output = HTML_TEMPLATE.format(
        title=escape(title),
        summary=summary_text,
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        mapping_chart=mapping_chart,
        blocks_table=_render_blocks_table(blocks_df),
        gaps_table=_render_gaps_table(summary),
        output_directory=escape(str(output_dir.resolve())),
    )

    destination = Path(html_path) if html_path is not None else (output_dir / DEFAULT_REPORT_NAME)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(html_output, encoding="utf-8")
    return destination


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate an interactive HTML report from frame mapping outputs."
    )
    parser.add_argument(
        "--outputs",
        default="outputs",
        help="Directory containing frame_mapping.csv, sync_blocks.csv, and mapping_summary.json.",
    )
    parser.add_argument(
        "--html",
        default=None,
        help="Path to the generated HTML file (defaults to <outputs>/frame_sync_report.html).",
    )
    parser.add_argument(
        "--title",
        default="Frame Synchronization Report",
        help="Title displayed at the top of the report.",
    )
    return parser


def main(argv: Iterable[str] | None = None) -> None:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    output_dir = Path(args.outputs)
    if not output_dir.exists():
        parser.error(f"Output directory {output_dir} does not exist.")

    html_path = Path(args.html) if args.html else None
    report_path = generate_report(output_dir, html_path=html_path, title=args.title)
    print(f"Report written to {report_path}")


__all__ = ["generate_report", "build_argument_parser", "main"]
