"""Allow ``python -m ssg_helper``."""

from ssg_helper.cli._dispatcher import main

if __name__ == "__main__":
    raise SystemExit(main())
