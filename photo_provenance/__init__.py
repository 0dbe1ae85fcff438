"""Photo provenance synthesizer.

Rewrites a batch of arbitrary images so that each one carries a
consistent, plausible capture record: a device identity, a local
capture time with matching GPS (UTC) timestamps, and an optionally
fuzzed capture location.  Pixels are fitted to the device's native
canvas before the tags are written.
"""

__version__ = "0.1.0"
