"""netimport - import modules by URL, cache them, and vendor them for offline runs."""

__version__ = "0.1.0"
