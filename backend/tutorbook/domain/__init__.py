"""Pure domain values for the reservation engine."""
