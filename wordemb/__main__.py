import sys

from wordemb.cli import main

sys.exit(main())
