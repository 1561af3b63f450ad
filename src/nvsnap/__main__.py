import sys

from nvsnap._cli import main

sys.exit(main())
