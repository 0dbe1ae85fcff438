"""Allow ``python -m photo_provenance``."""

import sys

from photo_provenance.cli import main

sys.exit(main())
