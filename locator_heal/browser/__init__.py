"""
Browser package
---------------
Adapters exposing a live automation page as the engine's PageQueries capability.
"""

from .playwright_page import PlaywrightPage, open_page

__all__ = ["PlaywrightPage", "open_page"]
