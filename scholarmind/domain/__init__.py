"""Domain records and errors for subjects and goals."""
