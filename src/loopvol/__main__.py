import sys

from loopvol.cli import main

sys.exit(main())
