from __future__ import annotations

from pathlib import Path

import pytest

from ssg_helper.core.exceptions import ConfigurationError, PreconditionError
from ssg_helper.core.ssg.output import empty_directory, prepare_output_dir

pytestmark = pytest.mark.fast


def _static(tmp_path: Path) -> Path:
    static = tmp_path / "www"
    (static / "css").mkdir(parents=True)
    (static / "css" / "foo.css").write_text("a{}", encoding="utf-8")
    (static / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")
    return static


def test_creates_missing_output_and_copies_static(tmp_path: Path) -> None:
    static = _static(tmp_path)
    out = tmp_path / "deep" / "dist" / "ssg"

    result = prepare_output_dir(out, static)

    assert result == out.resolve()
    assert (out / "css" / "foo.css").read_text(encoding="utf-8") == "a{}"
    assert (out / "robots.txt").exists()


def test_previous_contents_are_removed(tmp_path: Path) -> None:
    static = _static(tmp_path)
    out = tmp_path / "out"
    (out / "stale" / "nested").mkdir(parents=True)
    (out / "stale" / "nested" / "old.html").write_text("old", encoding="utf-8")
    (out / "index.html").write_text("old index", encoding="utf-8")

    prepare_output_dir(out, static)

    assert not (out / "stale").exists()
    assert not (out / "index.html").exists()
    assert sorted(p.name for p in out.iterdir()) == ["css", "robots.txt"]


def test_static_symlinks_are_copied_as_links(tmp_path: Path) -> None:
    static = _static(tmp_path)
    (static / "latest.css").symlink_to("css/foo.css")
    out = tmp_path / "out"

    prepare_output_dir(out, static)

    assert (out / "latest.css").is_symlink()
    assert (out / "latest.css").read_text(encoding="utf-8") == "a{}"


def test_missing_static_dir_is_a_precondition_error(tmp_path: Path) -> None:
    out = tmp_path / "out"
    (out).mkdir()
    (out / "keep.txt").write_text("keep", encoding="utf-8")

    with pytest.raises(PreconditionError, match="Static directory does not exist"):
        prepare_output_dir(out, tmp_path / "missing")

    # Nothing was wiped.
    assert (out / "keep.txt").exists()


@pytest.mark.parametrize("relative_out", ["www", "www/sub", "."])
def test_output_overlapping_static_is_rejected(tmp_path: Path, relative_out: str) -> None:
    static = _static(tmp_path)

    with pytest.raises(ConfigurationError, match="overlaps"):
        prepare_output_dir(tmp_path / relative_out, static)

    assert (static / "css" / "foo.css").exists()


def test_output_overlapping_protected_dir_is_rejected(tmp_path: Path) -> None:
    static = _static(tmp_path)
    ssr = tmp_path / "ssr"
    ssr.mkdir()

    with pytest.raises(ConfigurationError, match="overlaps"):
        prepare_output_dir(ssr / "out", static, protected=[ssr])


def test_empty_directory_keeps_the_directory(tmp_path: Path) -> None:
    target = tmp_path / "t"
    (target / "a").mkdir(parents=True)
    (target / "b.txt").write_text("b", encoding="utf-8")
    (target / "link").symlink_to(tmp_path)

    empty_directory(target)

    assert target.is_dir()
    assert list(target.iterdir()) == []
    assert tmp_path.exists()
