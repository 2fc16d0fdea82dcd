"""
Playwright host for the selector engine.
"""
from .playwright_browser import AccessiblePage, PlaywrightBrowser, PlaywrightTree

__all__ = ['AccessiblePage', 'PlaywrightBrowser', 'PlaywrightTree']
