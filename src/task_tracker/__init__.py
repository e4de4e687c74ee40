"""Task tracking API: CRUD over a single ``tasks`` table."""
