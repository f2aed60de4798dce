"""
Core primitives of the reserve / stabilizer accounting core.

Fixed-point arithmetic, error taxonomy, configuration, the shared ledger
(clock, address book, event log, atomic transactions) and the component
base class. Nothing here depends on a concrete protocol component.
"""
