from __future__ import annotations

from apiload.report.builder import Report, build_report, render_summary, write_report

__all__ = ["Report", "build_report", "render_summary", "write_report"]
