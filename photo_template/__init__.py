"""Photo template editor and batch generator."""
