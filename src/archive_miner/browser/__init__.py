"""Headless browser session and bounded waiting primitives.

Sub-modules:
- ``session`` — :class:`BrowserSession`, one Chromium instance per run
- ``polling`` — ``poll_first`` and ``first_completed`` wait helpers
"""
