"""Cross-cutting building blocks: configuration, logging, results, events."""
