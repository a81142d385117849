"""Push-based producer/consumer pipeline."""

from tablereplay.stream.buffered import BufferedConsumer
from tablereplay.stream.consumer import DataSetConsumer, DefaultConsumer
from tablereplay.stream.producer import DataSetProducer, EventSequenceValidator

__all__ = [
    "BufferedConsumer",
    "DataSetConsumer",
    "DataSetProducer",
    "DefaultConsumer",
    "EventSequenceValidator",
]
