"""
End-to-End Tests

Full application against the fake backend: load, lasso, sync, layouts,
failures.
"""
