"""
API server package: HTTP/JSON interface for the rewards dashboard.

Exposes windowed and since-based staking rewards, prices, swap quotes and
price history. Delegates to the rewards and market layers for data.
"""
