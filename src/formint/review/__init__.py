"""Interactive review: coordinate mapping, overlays and session state."""

from .overlay import ELEMENT_COLORS, DrawScheduler, OverlayRenderer, RenderConfig
from .page_images import ImageFilePages, PageImageSource, PDFPageImages, open_page_images
from .session import ReviewSession
from .viewport import Viewport

__all__ = [
    "DrawScheduler",
    "ELEMENT_COLORS",
    "ImageFilePages",
    "OverlayRenderer",
    "PageImageSource",
    "PDFPageImages",
    "RenderConfig",
    "ReviewSession",
    "Viewport",
    "open_page_images",
]
