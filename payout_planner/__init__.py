"""Payout Planner — salary vs. dividend profit-extraction calculator."""
__version__ = "0.1.0"
