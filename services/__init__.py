"""Business services composed from the store, the hasher and the token issuer."""
