import sys

from relint.cli import main

sys.exit(main())
