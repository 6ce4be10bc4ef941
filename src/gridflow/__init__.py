"""gridflow: collision-free, gravity-compacted grid layouts with item grouping."""

__version__ = "0.1.0"
