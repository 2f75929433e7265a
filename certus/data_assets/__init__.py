"""Data asset catalog — named abstract metrics and their declared shapes."""
