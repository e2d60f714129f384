"""Data access: indicators, providers, snapshot building."""
