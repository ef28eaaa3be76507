import sys

from arbitrage_paths.cli import main

sys.exit(main())
