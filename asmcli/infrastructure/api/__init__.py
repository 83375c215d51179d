"""Apple School Manager API client and pagination."""
