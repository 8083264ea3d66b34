"""Input decoding and output encoding."""

from .decoders import JsonStreamDecoder, RawLineDecoder, YamlStreamDecoder, make_decoder
from .encoders import Encoder, JsonEncoder, YamlEncoder, make_encoder

__all__ = [
    "JsonStreamDecoder",
    "RawLineDecoder",
    "YamlStreamDecoder",
    "make_decoder",
    "Encoder",
    "JsonEncoder",
    "YamlEncoder",
    "make_encoder",
]
