"""
linkedviews Test Suite

TEST AXIOMS:
============
1. Only a change in the selected base ids reaches the backend
2. A failed or malformed response leaves both views as they were
3. Display state (transform, feedback, modes) never drives requests
"""
