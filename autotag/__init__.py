"""Automatic tag assignment driven by constraint expressions.

A constraint is a small boolean expression bound to a tag. The engine
compiles it, evaluates it against every subject (e.g. a torrent) and adds or
removes the subject from the tag as the expression's truth changes.
"""

from __future__ import annotations

__version__ = "0.3.0"
