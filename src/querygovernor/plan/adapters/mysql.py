"""
MySQL adapter for ``EXPLAIN`` output.

Supports:
- Traditional EXPLAIN format (one row per table access)
- EXPLAIN FORMAT=JSON (``query_block`` document, or the single ``EXPLAIN``
  column a driver returns for it)

MySQL's EXPLAIN is estimate-only: row counts land in plan_rows and
actual_rows stays zero. Tables are joined left-deep in the order MySQL lists
them, which is the order its nested-loop executor reads them.
"""

from __future__ import annotations

from typing import Any

from querygovernor.exceptions import PlanParseError
from querygovernor.plan.adapters.base import PlanAdapter, as_count, as_float, as_text
from querygovernor.plan.models import PlanNode, PlanRoot

# MySQL access type -> normalized operator name
ACCESS_TYPE_NODES = {
    "ALL": "Seq Scan",
    "index": "Full Index Scan",
    "range": "Index Range Scan",
    "index_merge": "Index Merge",
    "ref": "Index Lookup",
    "eq_ref": "Index Lookup",
    "ref_or_null": "Index Lookup",
    "fulltext": "Fulltext Index Lookup",
    "const": "Const Lookup",
    "system": "Const Lookup",
}

# Keys under which FORMAT=JSON nests further operations
_NESTED_BLOCK_KEYS = (
    "ordering_operation",
    "grouping_operation",
    "duplicates_removal",
    "windowing",
    "buffer_result",
)


class MySQLPlanAdapter(PlanAdapter):
    """Normalize MySQL EXPLAIN output."""

    engine = "mysql"

    def can_handle(self, raw_plan: Any) -> bool:
        try:
            payload = self._unwrap(self._load(raw_plan))
        except PlanParseError:
            return False
        if isinstance(payload, dict):
            return "query_block" in payload
        return (
            isinstance(payload, list)
            and bool(payload)
            and isinstance(payload[0], dict)
            and "select_type" in payload[0]
        )

    def to_root(self, raw_plan: Any) -> PlanRoot:
        payload = self._unwrap(self._load(raw_plan))

        if isinstance(payload, dict) and "query_block" in payload:
            return self._from_json(payload["query_block"])
        if isinstance(payload, list):
            return self._from_rows(payload)

        raise PlanParseError(
            f"Unknown MySQL EXPLAIN format: {type(payload).__name__}", engine=self.engine
        )

    def _unwrap(self, payload: Any) -> Any:
        """FORMAT=JSON arrives from drivers as one row with an EXPLAIN column."""
        if (
            isinstance(payload, list)
            and len(payload) == 1
            and isinstance(payload[0], dict)
            and "EXPLAIN" in payload[0]
        ):
            return self._load(payload[0]["EXPLAIN"])
        return payload

    # ------------------------------------------------------------------
    # Traditional format
    # ------------------------------------------------------------------

    def _from_rows(self, rows: list[Any]) -> PlanRoot:
        nodes: list[PlanNode] = []
        filesort = False

        for row in rows:
            if not isinstance(row, dict):
                raise PlanParseError("EXPLAIN rows must be objects", engine=self.engine)
            extra = row.get("Extra") or ""
            filesort = filesort or "Using filesort" in extra
            if row.get("table") is None:
                continue
            nodes.append(
                self._table_node(
                    access_type=row.get("type"),
                    table=row.get("table"),
                    key=row.get("key"),
                    rows=row.get("rows"),
                    condition=None,
                    cost=None,
                )
            )

        return PlanRoot(plan=self._assemble(nodes, filesort, cost=None))

    # ------------------------------------------------------------------
    # FORMAT=JSON
    # ------------------------------------------------------------------

    def _from_json(self, query_block: Any) -> PlanRoot:
        if not isinstance(query_block, dict):
            raise PlanParseError("'query_block' must be an object", engine=self.engine)

        nodes: list[PlanNode] = []
        filesort = self._collect(query_block, nodes)
        cost = (query_block.get("cost_info") or {}).get("query_cost")

        return PlanRoot(plan=self._assemble(nodes, filesort, cost=cost))

    def _collect(self, block: dict[str, Any], nodes: list[PlanNode]) -> bool:
        """Append table accesses under block; return True if any step filesorts."""
        filesort = bool(block.get("using_filesort"))

        if isinstance(block.get("table"), dict):
            nodes.append(self._json_table(block["table"]))

        for item in block.get("nested_loop") or []:
            if isinstance(item, dict) and isinstance(item.get("table"), dict):
                nodes.append(self._json_table(item["table"]))

        for key in _NESTED_BLOCK_KEYS:
            nested = block.get(key)
            if isinstance(nested, dict):
                filesort = self._collect(nested, nodes) or filesort

        return filesort

    def _json_table(self, table: dict[str, Any]) -> PlanNode:
        return self._table_node(
            access_type=table.get("access_type"),
            table=table.get("table_name"),
            key=table.get("key"),
            rows=table.get("rows_examined_per_scan"),
            condition=table.get("attached_condition"),
            cost=(table.get("cost_info") or {}).get("prefix_cost"),
        )

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    @staticmethod
    def _table_node(
        access_type: Any,
        table: Any,
        key: Any,
        rows: Any,
        condition: Any,
        cost: Any,
    ) -> PlanNode:
        access = as_text(access_type) or "ALL"
        return PlanNode(
            node_type=ACCESS_TYPE_NODES.get(access, f"Table Access ({access})"),
            plan_rows=as_count(rows),
            total_cost=as_float(cost),
            relation_name=as_text(table),
            index_name=as_text(key),
            filter=as_text(condition),
        )

    @staticmethod
    def _assemble(nodes: list[PlanNode], filesort: bool, cost: Any) -> PlanNode | None:
        if not nodes:
            return None

        plan = nodes[0]
        for inner in nodes[1:]:
            plan = PlanNode(
                node_type="Nested Loop",
                plan_rows=inner.plan_rows * max(plan.plan_rows, 1),
                total_cost=inner.total_cost,
                children=[plan, inner],
            )

        if filesort:
            plan = PlanNode(
                node_type="Sort",
                plan_rows=plan.plan_rows,
                total_cost=plan.total_cost,
                children=[plan],
            )

        if cost is not None:
            plan = plan.model_copy(update={"total_cost": as_float(cost)})

        return plan
