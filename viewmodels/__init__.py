"""Presentation-ready view models for the rendered pages."""
