"""Core domain: models, ports, prompt parsing, filters and aggregation."""
