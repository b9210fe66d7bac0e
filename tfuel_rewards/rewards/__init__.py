"""
Reward aggregation: paginated coinbase walker, time-window accumulators and
the batch services behind GET /rewards and GET /earned.
"""
