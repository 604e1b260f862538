"""
Courtside - Tennis Value Bet Engine

Derives expected value, Kelly stake sizing and ranked,
filterable value bets from model predictions and bookmaker odds.
"""

__version__ = "1.0.0"
