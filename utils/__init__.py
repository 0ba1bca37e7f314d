"""Small shared helpers (time, validation, errors, database lookups)."""
