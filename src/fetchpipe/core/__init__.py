"""Core data types and exceptions for the fetch pipeline."""
