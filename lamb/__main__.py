import sys

from lamb.main import main

sys.exit(main())
