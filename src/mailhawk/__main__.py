# =============================================================================
# Mailhawk Entry Point for `python -m mailhawk`
# =============================================================================
# This module allows Mailhawk to be run as a Python module:
#
#   python -m mailhawk send --to bob@example.com --subject Hi --text Hello
#
# This is equivalent to running the 'mailhawk' command after installation.
# =============================================================================

import sys

from mailhawk.app import main

if __name__ == "__main__":
    sys.exit(main())
