"""Rendering of duplicate groups."""
import abc
import contextlib
import json
import sys
from pathlib import Path
from typing import BinaryIO, Iterable, TextIO

import msgpack

DEFAULT_OUTPUT = 'duplicateFiles.json'
STDOUT = '-'

Groups = Iterable[tuple[str, list[Path]]]


class Output(metaclass=abc.ABCMeta):
    """Writes (fingerprint, paths) groups to a stream. Returns the number of groups written."""

    binary = False

    @abc.abstractmethod
    def write(self, groups: Groups) -> int:
        raise NotImplementedError()


class JsonOutput(Output):
    """JSON array of {"hash": ..., "filePaths": [...]} objects, one object per line."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    def write(self, groups: Groups) -> int:
        count = 0
        self._stream.write("[\n")
        for fingerprint, paths in groups:
            if count:
                self._stream.write(",\n")
            self._stream.write(json.dumps({'hash': fingerprint, 'filePaths': [str(p) for p in paths]}))
            count += 1
        self._stream.write("\n]\n")
        return count


class TextOutput(Output):
    def __init__(self, stream: TextIO):
        self._stream = stream

    def write(self, groups: Groups) -> int:
        count = 0
        for fingerprint, paths in groups:
            if count:
                print(file=self._stream)
            print(f"{fingerprint} ({len(paths)} files)", file=self._stream)
            for path in paths:
                print(f"  {path}", file=self._stream)
            count += 1
        return count


class MsgpackOutput(Output):
    """msgpack array of [hash, [path, ...]] pairs."""

    binary = True

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    def write(self, groups: Groups) -> int:
        data = [[fingerprint, [str(p) for p in paths]] for fingerprint, paths in groups]
        result = msgpack.dumps(data)
        assert isinstance(result, bytes)
        self._stream.write(result)
        return len(data)


FORMATS: dict[str, type[Output]] = {
    'json': JsonOutput,
    'text': TextOutput,
    'msgpack': MsgpackOutput,
}


def write_report(groups: Groups, fmt: str = 'json', destination: str | Path = DEFAULT_OUTPUT) -> int:
    """Render groups in the given format to a file, or to stdout when destination is "-".

    Raises:
        ValueError: Unknown format
        OSError: The destination cannot be created or written
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown report format: {fmt}")
    output_class = FORMATS[fmt]

    with contextlib.ExitStack() as stack:
        if str(destination) == STDOUT:
            stream = sys.stdout.buffer if output_class.binary else sys.stdout
        elif output_class.binary:
            stream = stack.enter_context(open(destination, 'wb'))
        else:
            stream = stack.enter_context(open(destination, 'w', encoding='utf-8'))

        return output_class(stream).write(groups)
