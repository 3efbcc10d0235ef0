"""
ssg-helper - static-site generation from a server-side-rendered build

Boots the SSR server on a local port, waits for it to signal readiness,
captures the rendered root document into the static output, and stops the
server again.
"""

__version__ = "1.0.0"


def generate_ssg(*args, **kwargs):
    """Lazy re-export of :func:`ssg_helper.core.ssg.generate_ssg`."""
    from ssg_helper.core.ssg import generate_ssg as _generate_ssg

    return _generate_ssg(*args, **kwargs)


__all__ = ["__version__", "generate_ssg"]
