"""Utilities package for the Kitchen Costing application."""
