import sys

from saturation.main import main

sys.exit(main())
