"""Core data model for codegen response recovery."""
