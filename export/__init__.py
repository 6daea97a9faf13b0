"""Export-Modul: Terminal-Darstellung des Whiteboards (Rich)."""

from export.tui_renderer import (
    render_revenue_rows,
    render_schedule_rows,
    render_stats_rows,
)

__all__ = ["render_schedule_rows", "render_stats_rows", "render_revenue_rows"]
