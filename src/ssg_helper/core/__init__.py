"""ssg-helper core library."""

from . import exceptions  # noqa: F401
