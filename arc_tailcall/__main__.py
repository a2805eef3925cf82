"""Allow ``python -m arc_tailcall``."""

from arc_tailcall.main import main

if __name__ == "__main__":
    raise SystemExit(main())
