"""
Market data: CoinGecko spot/market-chart and SimpleSwap estimate clients,
plus the price, quote, fee-comparison, history and currency-list services.
"""
