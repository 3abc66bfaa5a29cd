import sys

from gost2file.cli import main

sys.exit(main())
