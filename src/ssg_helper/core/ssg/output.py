"""Output directory preparation: ensure, empty, seed with static assets."""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable

from ssg_helper.core.exceptions import ConfigurationError, PreconditionError
from ssg_helper.core.utils.io import ensure_directory

logger = logging.getLogger(__name__)


def _overlaps(a: Path, b: Path) -> bool:
    return a == b or a.is_relative_to(b) or b.is_relative_to(a)


def empty_directory(path: Path) -> None:
    """Remove every entry inside ``path``, keeping ``path`` itself."""
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def prepare_output_dir(output_dir: Path, static_dir: Path, *, protected: Iterable[Path] = ()) -> Path:
    """Ensure ``output_dir`` exists, empty it, then copy ``static_dir`` into it.

    ``protected`` lists extra directories (the SSR dist) the output must not
    overlap with, since the output is wiped.

    Raises:
        PreconditionError: ``static_dir`` is missing or the copy fails.
        ConfigurationError: the output overlaps a source directory.
    """
    output_dir = Path(output_dir).resolve()
    static_dir = Path(static_dir).resolve()

    if not static_dir.is_dir():
        raise PreconditionError(
            f"Static directory does not exist: {static_dir}",
            context={"static_dir": str(static_dir)},
        )

    for source in (static_dir, *(Path(p).resolve() for p in protected)):
        if _overlaps(output_dir, source):
            raise ConfigurationError(
                f"Output directory {output_dir} overlaps source directory {source}",
                context={"output_dir": str(output_dir), "source": str(source)},
            )

    try:
        ensure_directory(output_dir)
        empty_directory(output_dir)
        shutil.copytree(static_dir, output_dir, symlinks=True, dirs_exist_ok=True)
    except (OSError, shutil.Error) as exc:
        raise PreconditionError(
            f"Could not prepare output directory {output_dir}: {exc}",
            context={"output_dir": str(output_dir), "static_dir": str(static_dir)},
        ) from exc

    logger.info("Prepared %s from %s", output_dir, static_dir)
    return output_dir


__all__ = ["empty_directory", "prepare_output_dir"]
