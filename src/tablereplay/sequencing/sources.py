"""Foreign-key metadata sources for the table sequencer.

The sequencer needs one capability from a target: "which tables hold a
foreign key referencing this table?". Sources answer it from live database
reflection or from a static graph (in code or a YAML file).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Connection, Engine, inspect
from sqlalchemy import exc as sa_exc

from tablereplay.core.config import get_settings
from tablereplay.core.errors import MetadataAccessError
from tablereplay.core.logging import get_logger
from tablereplay.core.models.base import TableRef
from tablereplay.dataset.metadata import split_qualified_name

logger = get_logger(__name__)


@runtime_checkable
class MetadataSource(Protocol):
    """Answers foreign-key lookups for the sequencer.

    Answers must not change for the duration of one sequencing call. A
    source may also offer ``snapshot()`` returning a source frozen for one
    call, which the sequencer then uses instead.
    """

    def get_referencing_tables(self, schema: str | None, table_name: str) -> set[TableRef]:
        """Tables holding a foreign key that references ``table_name``.

        Raises:
            MetadataAccessError: If the lookup fails
        """
        ...

    def list_table_names(self) -> list[str]:
        """Names of all tables known to the source."""
        ...


def _fold(name: str | None, case_sensitive: bool) -> str | None:
    if name is None or case_sensitive:
        return name
    return name.upper()


class SqlAlchemyMetadataSource:
    """Metadata source reflecting foreign keys through SQLAlchemy.

    Foreign keys are reflected once per ``snapshot()``; the sequencer takes a
    snapshot per call, so consecutive sequencing calls see schema changes
    while one call reflects the schema only once.

    Args:
        bind: Engine or connection
        schema: Schema of unqualified tables; the default schema when None
        search_schemas: Schemas scanned for referencing tables. Defaults to
            ``[schema]``.
        case_sensitive: Match table names exactly. Defaults to the
            ``case_sensitive_table_names`` setting.
    """

    def __init__(
        self,
        bind: Engine | Connection,
        schema: str | None = None,
        search_schemas: Iterable[str | None] | None = None,
        case_sensitive: bool | None = None,
    ):
        self._bind = bind
        self._schema = schema
        self._search_schemas = list(search_schemas) if search_schemas is not None else [schema]
        if case_sensitive is None:
            case_sensitive = get_settings().case_sensitive_table_names
        self._case_sensitive = case_sensitive

    def key(self, schema: str | None, table_name: str) -> tuple[str | None, str | None]:
        """Lookup key of a referenced table; unqualified names use ``schema``."""
        return _fold(schema or self._schema, self._case_sensitive), _fold(
            table_name, self._case_sensitive
        )

    def reflect_references(
        self, table_name: str | None = None
    ) -> dict[tuple[str | None, str | None], set[TableRef]]:
        """Reverse foreign-key map of the search schemas, keyed like ``key``.

        Args:
            table_name: Table whose lookup triggered the reflection, for errors

        Raises:
            MetadataAccessError: If reflection fails
        """
        referencing: dict[tuple[str | None, str | None], set[TableRef]] = {}
        try:
            inspector = inspect(self._bind)
            for search_schema in self._search_schemas:
                foreign_keys = inspector.get_multi_foreign_keys(schema=search_schema)
                for (child_schema, child_table), constraints in foreign_keys.items():
                    child = TableRef(table_name=child_table, schema_name=child_schema)
                    for fk in constraints:
                        referred_schema = fk.get("referred_schema") or child_schema
                        parent = (
                            _fold(referred_schema, self._case_sensitive),
                            _fold(fk["referred_table"], self._case_sensitive),
                        )
                        referencing.setdefault(parent, set()).add(child)
        except sa_exc.SQLAlchemyError as e:
            target = f" referencing '{table_name}'" if table_name else ""
            raise MetadataAccessError(
                f"Failed to read foreign keys{target}: {e}", table_name=table_name
            ) from e

        logger.debug(
            "foreign_keys_reflected",
            schemas=self._search_schemas,
            referenced_tables=len(referencing),
        )
        return referencing

    def snapshot(self) -> ForeignKeySnapshot:
        """Source answering every lookup from one reflection pass."""
        return ForeignKeySnapshot(self)

    def get_referencing_tables(self, schema: str | None, table_name: str) -> set[TableRef]:
        return self.snapshot().get_referencing_tables(schema, table_name)

    def list_table_names(self) -> list[str]:
        try:
            return inspect(self._bind).get_table_names(schema=self._schema)
        except sa_exc.SQLAlchemyError as e:
            raise MetadataAccessError(f"Failed to list tables: {e}") from e


class ForeignKeySnapshot:
    """Frozen view of a SqlAlchemyMetadataSource.

    Reflects lazily on the first lookup and answers all later lookups from
    the same reverse foreign-key map.
    """

    def __init__(self, source: SqlAlchemyMetadataSource):
        self._source = source
        self._referencing: dict[tuple[str | None, str | None], set[TableRef]] | None = None

    def get_referencing_tables(self, schema: str | None, table_name: str) -> set[TableRef]:
        if self._referencing is None:
            self._referencing = self._source.reflect_references(table_name)
        referencing = set(self._referencing.get(self._source.key(schema, table_name), set()))
        logger.debug(
            "referencing_tables_found",
            table=table_name,
            schema=schema,
            referencing=sorted(str(ref) for ref in referencing),
        )
        return referencing

    def list_table_names(self) -> list[str]:
        return self._source.list_table_names()


def stable_source(source: MetadataSource) -> MetadataSource:
    """View of ``source`` whose answers stay fixed for one sequencing call.

    Sources that can freeze their answers expose ``snapshot()``; others are
    used as they are.
    """
    snapshot = getattr(source, "snapshot", None)
    return snapshot() if callable(snapshot) else source


class StaticMetadataSource:
    """Metadata source over an in-memory foreign-key graph.

    Args:
        references: Mapping of each table to the tables its foreign keys
            reference, e.g. ``{"child": ["parent"]}``. Names may be
            schema-qualified.
        case_sensitive: Match table names exactly. Defaults to the
            ``case_sensitive_table_names`` setting.
    """

    def __init__(
        self,
        references: Mapping[str, Iterable[str]],
        case_sensitive: bool | None = None,
    ):
        if case_sensitive is None:
            case_sensitive = get_settings().case_sensitive_table_names
        self._case_sensitive = case_sensitive
        self._table_names: list[str] = []
        self._referencing: dict[tuple[str | None, str | None], set[TableRef]] = {}

        seen: set[str | None] = set()
        for child, parents in references.items():
            parents = list(parents)
            for name in (child, *parents):
                if _fold(name, case_sensitive) not in seen:
                    seen.add(_fold(name, case_sensitive))
                    self._table_names.append(name)
            child_schema, child_table = split_qualified_name(child)
            child_ref = TableRef(table_name=child_table, schema_name=child_schema)
            for parent in parents:
                self._referencing.setdefault(self._key(*split_qualified_name(parent)), set()).add(
                    child_ref
                )

    def _key(self, schema: str | None, table_name: str) -> tuple[str | None, str | None]:
        return _fold(schema, self._case_sensitive), _fold(table_name, self._case_sensitive)

    def get_referencing_tables(self, schema: str | None, table_name: str) -> set[TableRef]:
        return set(self._referencing.get(self._key(schema, table_name), set()))

    def list_table_names(self) -> list[str]:
        return list(self._table_names)


class TableDependency(BaseModel):
    """One table of a dependency config file."""

    name: str
    schema_name: str | None = Field(default=None, alias="schema")
    references: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema_name}.{self.name}" if self.schema_name else self.name


class DependencyConfig(BaseModel):
    """Foreign-key graph declared in YAML.

    Example:
        tables:
          - name: parent
          - name: child
            references: [parent]
    """

    tables: list[TableDependency] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def load_dependency_config(path: Path | str, case_sensitive: bool | None = None) -> StaticMetadataSource:
    """Load a foreign-key graph from a YAML file.

    Args:
        path: YAML file with a ``tables`` list
        case_sensitive: Match table names exactly

    Returns:
        StaticMetadataSource over the declared graph

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML or does not match the format
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dependency config not found: {path}")

    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in dependency config {path}: {e}") from e

    config = DependencyConfig.model_validate(raw)
    references = {table.qualified_name: table.references for table in config.tables}
    logger.debug("dependency_config_loaded", path=str(path), tables=len(references))
    return StaticMetadataSource(references, case_sensitive=case_sensitive)
