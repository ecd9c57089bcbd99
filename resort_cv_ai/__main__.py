"""Run the CLI: python -m resort_cv_ai"""

import sys

from resort_cv_ai.cli import main

sys.exit(main())
