"""Tournament scoring and lifecycle engine.

Turns a read-only snapshot of matches and predictions into standings,
trophy unlocks and ending-date estimates. Nothing in this package touches
the database; callers load a snapshot and commit the outcome themselves.
"""
