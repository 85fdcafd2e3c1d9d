"""Markdown report rendering and output."""
