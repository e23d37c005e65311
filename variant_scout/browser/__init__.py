"""Browser lifecycle, page sessions and page extraction rules."""
