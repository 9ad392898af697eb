import sys

from serverstats.app import main

sys.exit(main())
