"""Core report generation."""
