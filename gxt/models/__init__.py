"""Data models for the GxT trading agent."""
