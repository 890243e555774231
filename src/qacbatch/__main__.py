"""Module entry point for `python -m qacbatch`."""

from qacbatch.ui.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
