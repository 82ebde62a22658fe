import sys

from pylox.cli import main

sys.exit(main())
