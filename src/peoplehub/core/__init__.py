"""Core domain: auth, tenancy and permissions."""
