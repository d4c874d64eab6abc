"""serp-it: multi-engine web search aggregation with page rendering."""

__version__ = "0.1.0"

__all__ = ["__version__"]
