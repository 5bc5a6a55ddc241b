"""Core plan reading, conversion and shared types for terraform-validator."""
