"""Dataset producers and writers for external representations."""

from tablereplay.sources.csv_dataset import (
    CsvProducer,
    CsvWriter,
    read_csv_dataset,
    write_csv_dataset,
)
from tablereplay.sources.flat_xml import (
    FlatXmlProducer,
    FlatXmlWriter,
    read_flat_xml,
    write_flat_xml,
)
from tablereplay.sources.query import QueryProducer

__all__ = [
    "CsvProducer",
    "CsvWriter",
    "FlatXmlProducer",
    "FlatXmlWriter",
    "QueryProducer",
    "read_csv_dataset",
    "read_flat_xml",
    "write_csv_dataset",
    "write_flat_xml",
]
