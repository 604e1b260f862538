"""Data layer: row schemas and integrity checks."""
