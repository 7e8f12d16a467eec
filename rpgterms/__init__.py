"""RPG Maker 2000/2003 term extraction and translation merge tool."""

import re

__version__ = "0.4.0"

# Line endings folded to "\n" when building entry keys
LINE_BREAK_RE = re.compile(r'\r\n?')
