"""Provider services: credentials, cache reconciliation and database sessions."""
