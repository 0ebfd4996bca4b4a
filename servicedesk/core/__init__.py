"""Cross-cutting configuration, logging, error and clock helpers."""
