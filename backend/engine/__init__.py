"""
Session-side state for map aggregations.

The visualization session owns a key-value store; the collar cache reads and
conditionally writes the `mapCollar` slot in it.
"""
