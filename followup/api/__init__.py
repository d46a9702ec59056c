"""HTTP API for the followup report engine."""
