import sys

from fitme.cli import main

sys.exit(main())
