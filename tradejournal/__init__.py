"""tradejournal - trading journal with position lifecycle, analytics and valuation."""

__version__ = "0.1.0"
