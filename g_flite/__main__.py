import sys

from g_flite.cli import main

sys.exit(main())
