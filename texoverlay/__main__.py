"""Allow `python -m texoverlay`."""

from texoverlay.cli import main

raise SystemExit(main())
