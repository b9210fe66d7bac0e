"""Client side of the rewards service: HTTP client, refresh tick, display formatting."""
