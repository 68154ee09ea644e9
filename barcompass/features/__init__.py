"""Feature slices: places client, venue store and ingestion."""
