import sys

from pixeldiff.cli import main

sys.exit(main())
