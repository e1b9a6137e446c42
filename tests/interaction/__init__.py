"""Selection, mode and transform tests."""
