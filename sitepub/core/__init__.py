"""Core building blocks: error taxonomy and artifact persistence."""
