"""
TFUEL Rewards: staking reward dashboard backend for Theta wallets.

Aggregates balances, stake and coinbase reward history from the Theta
explorer, spot prices and swap quotes from CoinGecko/SimpleSwap, and keeps
local earnings tracking for the dashboard client.
"""

__version__ = "0.1.0"
