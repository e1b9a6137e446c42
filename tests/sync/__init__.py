"""Session, sync engine and layout dispatch tests."""
