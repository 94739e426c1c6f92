"""Service layer for the build & publish pipeline."""
