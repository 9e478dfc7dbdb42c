import sys

from anchorcheck.cli import main


sys.exit(main())
