"""Reader and Writer — documents and streams of documents.

Each document (or, when streaming, each top-level value) gets its own
rolling cache: the Encoder and Decoder create one per call, so nothing
carries over from one unit to the next.
"""

from __future__ import annotations

import logging
from typing import IO, Any, Callable, Iterator, Optional

from ._decoder import Decoder
from ._encoder import Encoder
from ._handlers import HandlerRegistry
from ._json_adapter import iter_json_values, parse_json, serialize_json

logger = logging.getLogger(__name__)


class Reader:
    def __init__(self, registry: Optional[HandlerRegistry] = None, *,
                 strict_tags: bool = False) -> None:
        self._decoder = Decoder(registry, strict_tags=strict_tags)

    def read(self, fp: IO, callback: Optional[Callable[[Any], Any]] = None) -> Any:
        """Read one document from `fp`, or, given `callback`, every value in it.

        With a callback the stream is consumed value by value and the
        callback runs before any further input is parsed.  Returns None in
        that case.
        """
        if callback is None:
            return self._decoder.decode(parse_json(fp.read()))
        for value in self.iter_read(fp):
            callback(value)
        return None

    def iter_read(self, fp: IO) -> Iterator[Any]:
        for count, tree in enumerate(iter_json_values(fp), 1):
            logger.debug("decoding stream value %d", count)
            yield self._decoder.decode(tree)


class Writer:
    """Writes values to a text stream, one document per line."""

    def __init__(self, fp: IO, registry: Optional[HandlerRegistry] = None, *,
                 verbose: bool = False) -> None:
        self._fp = fp
        self._encoder = Encoder(registry, verbose=verbose)

    def write(self, value: Any) -> None:
        # Encode fully before writing so a failure leaves no partial line.
        text = serialize_json(self._encoder.encode(value))
        self._fp.write(text)
        self._fp.write("\n")

    def flush(self) -> None:
        self._fp.flush()
