import sys

from quakeframe.cli import main

sys.exit(main())
