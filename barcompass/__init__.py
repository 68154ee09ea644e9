"""BarCompass venue ingestion service."""
