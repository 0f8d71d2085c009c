"""Shell-style ``*`` wildcards for S3 filenames."""

import re


WILDCARD = "*"

_WILDCARD_RUN_RE = re.compile(r"\*{2,}")


def is_pattern(name):
    return name is not None and WILDCARD in name


def to_pattern(name):
    """Compile a ``*`` wildcard string into an anchored regex.

    Returns None when *name* is empty or has no wildcard; callers should
    compare such names literally. ``*`` is the only wildcard, everything
    else matches itself.
    """
    if name is None:
        return None
    name = name.strip()
    if not name or not is_pattern(name):
        return None

    name = _WILDCARD_RUN_RE.sub(WILDCARD, name)
    fragments = [re.escape(literal) for literal in name.split(WILDCARD)]
    return re.compile("^" + ".*".join(fragments) + "$", re.DOTALL)
