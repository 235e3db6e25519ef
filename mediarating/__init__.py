"""Media rating service: test lifecycle and rating consistency engine."""
