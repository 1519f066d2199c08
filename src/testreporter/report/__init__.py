"""Report rendering and annotation building."""

from testreporter.report.annotations import REPO_ROOT, Annotation, build_annotations
from testreporter.report.formats import MarkdownFormat, PlainTextFormat, ReportFormat, get_format
from testreporter.report.render import ReportOptions, make_id_prefix, render_report, summary_line

__all__ = [
    "REPO_ROOT",
    "Annotation",
    "build_annotations",
    "MarkdownFormat",
    "PlainTextFormat",
    "ReportFormat",
    "get_format",
    "ReportOptions",
    "make_id_prefix",
    "render_report",
    "summary_line",
]
