"""
Local incremental tracking: persisted earnings baselines, day-keyed
snapshots, lifetime start, price history and the USD earnings alert.

All state goes through a KeyValueStore under versioned keys so the logic is
testable without real persistence.
"""
