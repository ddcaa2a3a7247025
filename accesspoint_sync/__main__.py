import sys

from accesspoint_sync.cli import main

sys.exit(main())
