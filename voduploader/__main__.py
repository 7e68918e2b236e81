import sys

from voduploader.cli import main

sys.exit(main())
