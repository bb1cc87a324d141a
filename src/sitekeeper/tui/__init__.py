"""Textual terminal UI for SiteKeeper."""
