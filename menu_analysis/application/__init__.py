"""Application services and wiring."""
