"""Human-readable summaries of record streams"""

from probefence.core.listen.summary import (
    ListenStats,
    format_counts,
    render_listen_output,
    render_records,
    truncate_line,
)

__all__ = [
    "ListenStats",
    "format_counts",
    "render_listen_output",
    "render_records",
    "truncate_line",
]
