"""Terminal output cleaning."""

import re

# CSI: ESC [ params intermediates final  (colors, cursor movement, erase)
_CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
# OSC: ESC ] ... terminated by BEL or ESC \  (window titles, hyperlinks)
_OSC_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
# Remaining two-character escapes, e.g. ESC ( B or ESC =
_ESC_RE = re.compile(r"\x1b[ -/]*[0-~]")
# C0 controls except tab, plus DEL
_CONTROL_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def strip_escape_sequences(text: str) -> str:
    """Remove terminal escape sequences and control characters.

    Color codes and cursor movement produced by tools writing to a terminal
    would otherwise show up as garbage in the chat channel. Tabs survive.
    """
    if "\x1b" in text:
        text = _OSC_RE.sub("", text)
        text = _CSI_RE.sub("", text)
        text = _ESC_RE.sub("", text)
    return _CONTROL_RE.sub("", text)
