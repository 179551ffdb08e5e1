# frame_annote/__main__.py
from __future__ import annotations

from .cli import app


def main() -> None:
    app(prog_name="frame-annote")


if __name__ == "__main__":
    main()
