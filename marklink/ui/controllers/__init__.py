"""Qt-aware controllers used by the main window."""

from .marker_link_controller import MarkerLinkController
from .marker_search_controller import MarkerSearchController

__all__ = [
    "MarkerLinkController",
    "MarkerSearchController",
]
