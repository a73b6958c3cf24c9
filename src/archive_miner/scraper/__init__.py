"""Snapshot acquisition and content extraction.

Sub-modules:
- ``config``            — selectors, provider endpoints and tuning constants
- ``link_collector``    — paginated index page link discovery
- ``snapshot_locator``  — archive provider navigation strategies
- ``content_extractor`` — BeautifulSoup-based title/body extraction
- ``archive_miner``     — one page-scoped locate + extract attempt
- ``retry``             — fixed-backoff retry orchestration
"""
