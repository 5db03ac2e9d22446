from __future__ import annotations

import re
from typing import Optional

# Columns of the ascii tables printed by the openstack clients:
# | id | 6c2a... |
_COLUMN_SEP = re.compile(r"[ \t]*\|[ \t]*")


def get_field(line: str, index: int) -> Optional[str]:
    """Return column ``index`` of a client table row.

    Index 0 is whatever precedes the first ``|`` (usually empty), so the
    first real column is 1. Negative indices count back from the last real
    column, skipping what follows the closing ``|``: -1 is the last column.
    """

    cols = _COLUMN_SEP.split(line.rstrip("\n"))
    if index < 0:
        index -= 1
    try:
        return cols[index]
    except IndexError:
        return None
