"""Top-level ssg-helper commands."""
