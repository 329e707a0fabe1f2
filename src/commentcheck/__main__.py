import sys

from commentcheck.cli import main

sys.exit(main())
