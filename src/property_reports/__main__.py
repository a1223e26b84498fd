import sys

from property_reports.cli import main

sys.exit(main())
