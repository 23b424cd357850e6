"""Allow `python -m jslower`."""

import sys

from .cli import main

sys.exit(main())
