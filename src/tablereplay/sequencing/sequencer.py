"""Foreign-key dependency sequencer.

Orders tables so that every table precedes the tables whose foreign keys
reference it (parents before children). Unrelated tables are ordered by name.

Algorithm, per ``order`` call:

1. Children of a table (the tables referencing it) are fetched lazily from a
   snapshot of the metadata source and memoized in a run-local arena.
2. Descendants are the transitive closure of children, computed with an
   explicit worklist.
3. Every requested table that is its own descendant is part of a cycle; the
   first one found (in input order) fails the call with the cycle path.
4. The requested tables are topologically sorted, an edge A -> B existing
   whenever B is a descendant of A; ties are broken by name.

Lookup failures of the metadata source propagate unchanged.
"""

from __future__ import annotations

import heapq
import time
from collections import deque
from collections.abc import Iterable

from tablereplay.core.config import get_settings
from tablereplay.core.errors import CyclicDependencyError
from tablereplay.core.logging import get_logger, record_operation_timing
from tablereplay.dataset.dataset import CachedDataSet, DataSet
from tablereplay.dataset.metadata import get_qualified_name, split_qualified_name
from tablereplay.sequencing.sources import MetadataSource, stable_source

logger = get_logger(__name__)


class _SequencingRun:
    """Memo arena scoped to one sequencing call.

    Tables are interned as integer ids; children and descendants are memoized
    per id and never outlive the run.
    """

    def __init__(self, sequencer: TableSequencer):
        self._sequencer = sequencer
        self._source = stable_source(sequencer.source)
        self._keys: list[str] = []
        self._locations: list[tuple[str | None, str]] = []
        self._ids: dict[str, int] = {}
        self._children: dict[int, frozenset[int]] = {}
        self._descendants: dict[int, frozenset[int]] = {}

    def intern(self, schema: str | None, table_name: str) -> int:
        key = self._sequencer.node_key(schema, table_name)
        node = self._ids.get(key)
        if node is None:
            node = len(self._keys)
            self._ids[key] = node
            self._keys.append(key)
            self._locations.append((schema, table_name))
        return node

    def intern_name(self, name: str) -> int:
        return self.intern(*self._sequencer.locate(name))

    def key(self, node: int) -> str:
        return self._keys[node]

    def children(self, node: int) -> frozenset[int]:
        children = self._children.get(node)
        if children is None:
            schema, table_name = self._locations[node]
            refs = self._source.get_referencing_tables(schema, table_name)
            children = frozenset(
                self.intern(ref.schema_name if ref.schema_name is not None else schema, ref.table_name)
                for ref in refs
            )
            self._children[node] = children
        return children

    def descendants(self, node: int) -> frozenset[int]:
        descendants = self._descendants.get(node)
        if descendants is None:
            visited: set[int] = set()
            stack = list(self.children(node))
            while stack:
                current = stack.pop()
                if current in visited:
                    continue
                visited.add(current)
                stack.extend(self.children(current) - visited)
            descendants = frozenset(visited)
            self._descendants[node] = descendants
        return descendants

    def find_cycle(self, node: int) -> list[int]:
        """Shortest path ``node -> ... -> node`` through the children graph."""
        parents: dict[int, int] = {}
        queue = deque([node])
        while queue:
            current = queue.popleft()
            for child in sorted(self.children(current)):
                if child == node:
                    path = [current]
                    while path[-1] != node:
                        path.append(parents[path[-1]])
                    return [node, *reversed(path[:-1]), node]
                if child not in parents:
                    parents[child] = current
                    queue.append(child)
        return [node]

    def check_cycle(self, node: int, name: str) -> None:
        if node in self.descendants(node):
            cycle = [self._display_name(n) for n in self.find_cycle(node)]
            cycle[0] = cycle[-1] = name
            raise CyclicDependencyError(name, cycle)

    def _display_name(self, node: int) -> str:
        schema, table_name = self._locations[node]
        if self._sequencer.qualified_names:
            return get_qualified_name(schema, table_name)
        return table_name


class TableSequencer:
    """Orders tables by foreign-key dependency.

    Args:
        source: Metadata source answering foreign-key lookups
        qualified_names: Resolve ``schema.table`` names, splitting on the
            first ".". Defaults to the ``qualified_table_names`` setting.
        default_schema: Schema of unqualified names. Defaults to the
            ``default_schema`` setting.
        case_sensitive: Match table names exactly. Defaults to the
            ``case_sensitive_table_names`` setting.
    """

    def __init__(
        self,
        source: MetadataSource,
        qualified_names: bool | None = None,
        default_schema: str | None = None,
        case_sensitive: bool | None = None,
    ):
        settings = get_settings()
        self.source = source
        self.qualified_names = (
            settings.qualified_table_names if qualified_names is None else qualified_names
        )
        self.default_schema = default_schema if default_schema is not None else settings.default_schema
        self.case_sensitive = (
            settings.case_sensitive_table_names if case_sensitive is None else case_sensitive
        )

    def locate(self, name: str) -> tuple[str | None, str]:
        """Split a requested table name into ``(schema, table)``."""
        if self.qualified_names:
            return split_qualified_name(name, self.default_schema)
        return self.default_schema, name

    def node_key(self, schema: str | None, table_name: str) -> str:
        key = get_qualified_name(schema, table_name) if self.qualified_names else table_name
        return key if self.case_sensitive else key.upper()

    def order(self, table_names: Iterable[str]) -> list[str]:
        """Order tables so that referenced tables come first.

        Args:
            table_names: Tables to order; duplicates are dropped

        Returns:
            The requested names, parents before children, ties by name

        Raises:
            CyclicDependencyError: If a requested table is on a foreign-key cycle
            MetadataAccessError: If the metadata source fails a lookup
        """
        start = time.perf_counter()
        run = _SequencingRun(self)

        requested: dict[int, str] = {}
        for name in table_names:
            requested.setdefault(run.intern_name(name), name)

        for node, name in requested.items():
            run.check_cycle(node, name)

        successors: dict[int, list[int]] = {node: [] for node in requested}
        in_degree = dict.fromkeys(requested, 0)
        for node in requested:
            descendants = run.descendants(node)
            for other in requested:
                if other != node and other in descendants:
                    successors[node].append(other)
                    in_degree[other] += 1

        heap = [(run.key(node), requested[node], node) for node, degree in in_degree.items() if degree == 0]
        heapq.heapify(heap)
        ordered: list[str] = []
        while heap:
            _, name, node = heapq.heappop(heap)
            ordered.append(name)
            for successor in successors[node]:
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    heapq.heappush(heap, (run.key(successor), requested[successor], successor))

        elapsed = time.perf_counter() - start
        record_operation_timing("sequence", elapsed)
        logger.debug("tables_sequenced", tables=ordered, seconds=round(elapsed, 4))
        return ordered

    def order_all(self) -> list[str]:
        """Order every table the metadata source knows."""
        return self.order(self.source.list_table_names())

    def compare(self, table_a: str, table_b: str) -> int:
        """Pairwise dependency comparison.

        Returns:
            -1 if ``table_a`` must precede ``table_b``, 1 if it must follow,
            otherwise the name comparison

        Raises:
            CyclicDependencyError: If either table is on a foreign-key cycle
        """
        run = _SequencingRun(self)
        node_a = run.intern_name(table_a)
        node_b = run.intern_name(table_b)

        run.check_cycle(node_a, table_a)
        if node_b in run.descendants(node_a):
            return -1
        run.check_cycle(node_b, table_b)
        if node_a in run.descendants(node_b):
            return 1

        key_a, key_b = run.key(node_a), run.key(node_b)
        return (key_a > key_b) - (key_a < key_b)


def order_dataset(dataset: DataSet, sequencer: TableSequencer) -> CachedDataSet:
    """Return the dataset's tables in dependency order.

    Streaming datasets are materialized first.
    """
    materialized = dataset.materialize()
    return materialized.select(sequencer.order(materialized.table_names))
