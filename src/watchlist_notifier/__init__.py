"""
Watchlist notifier service.

A Flask API deployed on Google Cloud Run that sends the welcome email on
sign-up and the daily personalized market news digest for a stock
watchlist app.
"""

__version__ = "1.0.0"
__author__ = "Signalist"
