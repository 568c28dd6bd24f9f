"""Domain services composed from injected repositories."""
