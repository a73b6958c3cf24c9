import sys

from archive_miner.cli import main

sys.exit(main())
