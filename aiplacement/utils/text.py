# aiplacement/utils/text.py
import re
from typing import Optional

# A tag opens with a letter, '/' or '!'; "2 < 3 and 5 > 4" has none.
_TAG_RE = re.compile(r"</?[A-Za-z!][^>]*>")


def strip_tags(text: Optional[str]) -> str:
    return _TAG_RE.sub("", text or "").strip()
