import sys

from stepmigrator.cli import main

sys.exit(main())
