"""Built-in plan rules. Importing this package registers them."""

from querygovernor.plan.rules.base import PlanRule

# Registration order is the order rules are evaluated on each node.
from querygovernor.plan.rules.seq_scan_large_table import SeqScanLargeTable
from querygovernor.plan.rules.estimate_mismatch import EstimateMismatch
from querygovernor.plan.rules.expensive_sort import ExpensiveSort
from querygovernor.plan.rules.high_loop_count import HighLoopCount

__all__ = [
    "PlanRule",
    # Individual rules
    "EstimateMismatch",
    "ExpensiveSort",
    "HighLoopCount",
    "SeqScanLargeTable",
]
