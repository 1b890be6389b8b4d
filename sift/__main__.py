"""Allow running the sifter as ``python -m sift``."""

import sys

from sift.main import main

sys.exit(main())
