"""
Market data app.

Read-only cryptocurrency prices from the Binance public REST API and
conversions between assets using those prices.
"""
