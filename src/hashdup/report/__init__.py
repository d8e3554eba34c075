"""Report rendering for duplicate scans.

This package turns the duplicate groups of a finished scan into JSON, text or msgpack.
"""

from .writer import Output, JsonOutput, TextOutput, MsgpackOutput, FORMATS, write_report
