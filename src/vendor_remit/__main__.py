import sys

from vendor_remit.cli import main

sys.exit(main())
