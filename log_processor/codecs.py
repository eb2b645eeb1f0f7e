"""
Line codecs turning raw object lines into log events
"""

import json
import logging
from typing import Any, Dict, Iterator

from log_processor.errors import ConfigurationError

logger = logging.getLogger(__name__)

JSON_PARSE_FAILURE_TAG = '_jsonparsefailure'


class PlainCodec:
    """Each line becomes one event with the line text in 'message'"""

    name = 'plain'

    def __init__(self, charset: str = 'utf-8'):
        self.charset = charset

    def decode(self, line: bytes) -> Iterator[Dict[str, Any]]:
        yield {'message': line.decode(self.charset, errors='replace')}


class JsonCodec:
    """
    Each line is parsed as JSON

    An object becomes one event, an array yields one event per object item.
    Lines that are not valid JSON are kept as plain text events tagged
    '_jsonparsefailure' rather than dropped.
    """

    name = 'json'

    def __init__(self, charset: str = 'utf-8'):
        self.charset = charset

    def _failure(self, text: str) -> Dict[str, Any]:
        return {'message': text, 'tags': [JSON_PARSE_FAILURE_TAG]}

    def decode(self, line: bytes) -> Iterator[Dict[str, Any]]:
        text = line.decode(self.charset, errors='replace')
        if not text.strip():
            return

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"JSON parse error: {str(e)}, content: {text[:100]}...")
            yield self._failure(text)
            return

        if isinstance(parsed, dict):
            yield parsed
        elif isinstance(parsed, list):
            for item in parsed:
                if isinstance(item, dict):
                    yield item
                else:
                    yield self._failure(json.dumps(item))
        else:
            yield self._failure(text)


CODECS = {
    PlainCodec.name: PlainCodec,
    JsonCodec.name: JsonCodec,
}


def get_codec(name: str, charset: str = 'utf-8'):
    """
    Instantiate a codec by name

    Raises:
        ConfigurationError: for unknown codec names
    """
    try:
        codec_class = CODECS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown codec '{name}', expected one of: {', '.join(sorted(CODECS))}")
    return codec_class(charset=charset)
