"""Build-time integration — coordination lock and manifest generation."""
