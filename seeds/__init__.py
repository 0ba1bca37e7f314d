"""Default data for a fresh database (`flask seed`)."""
