"""Allow `python -m bhumi`."""

import sys

from bhumi.app import main

sys.exit(main())
