"""Allow ``python -m sse_ledger``."""

from sse_ledger.cli import main


raise SystemExit(main())
