"""Recover module output from the execution daemon's combined stdout.

plasmd lets the executed module inherit its stdout, so module bytes and the
daemon's timestamped log lines share one stream. A module that prints without
a trailing newline ends up glued to the front of the next log line:

    "dlroW ,olleH2025-11-09T04:50:35.000Z INFO done"

Rules, applied per line after stripping ANSI escape sequences:
- a line starting with a timestamp is a pure log line and is dropped
- a line with an embedded timestamp keeps only the text before it
- any other line is kept
Kept text is trimmed, blanks are dropped, and lines are rejoined with "\\n".
"""

import re


# CSI sequences (colors, cursor movement) as emitted by tracing subscribers.
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_LEADING_TIMESTAMP_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}T")
_PREFIX_BEFORE_TIMESTAMP_RE = re.compile(r"^(.*?)[0-9]{4}-[0-9]{2}-[0-9]{2}T")
# Whitespace trimmed around kept text; other Unicode spaces are module output.
_TRIM_CHARS = " \t\n\r\0\x0b"


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def extract_module_output(output: str) -> str:
    """Extract the module's own output from interleaved daemon output."""
    module_lines = []
    for line in strip_ansi(output).split("\n"):
        if _LEADING_TIMESTAMP_RE.match(line):
            continue

        match = _PREFIX_BEFORE_TIMESTAMP_RE.match(line)
        content = (match.group(1) if match else line).strip(_TRIM_CHARS)
        if content:
            module_lines.append(content)

    return "\n".join(module_lines)
