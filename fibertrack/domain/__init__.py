"""Plain records and validation for the migration core."""
