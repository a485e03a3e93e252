"""Optional framework integrations."""
