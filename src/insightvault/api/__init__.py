"""HTTP API for InsightVault."""
