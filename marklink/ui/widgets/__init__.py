"""Widgets for rendering markers and marker search results."""

from .marker_editor import MarkerEditor
from .marker_results_panel import MarkerResultsPanel

__all__ = ["MarkerEditor", "MarkerResultsPanel"]
