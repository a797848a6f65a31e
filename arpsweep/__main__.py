import sys

from arpsweep.scanner import main

sys.exit(main())
