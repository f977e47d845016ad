"""Allow ``python -m dnslog_indexer``."""

import sys

from dnslog_indexer.cli import main

sys.exit(main())
