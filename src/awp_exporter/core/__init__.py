"""Framework-free domain logic: decoding, gauge registry, ingestion."""
