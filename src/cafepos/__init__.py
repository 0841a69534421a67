"""cafepos: order lifecycle and sales summaries for a small café."""

__version__ = "0.1.0"
