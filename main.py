"""RPG Maker Terms: term extraction and translation merge tool.

Launch with: python main.py DIRECTORY --create
"""

import sys

from rpgterms.cli import main


if __name__ == "__main__":
    sys.exit(main())
