# ============================================================================
# SOURCEFILE: steps.py
# RELPATH: build_report_inspector/src/build_report_inspector/steps.py
# PROJECT: Build Report Inspector
# VERSION: 1.0.0
# LIFECYCLE: Active
# DESCRIPTION: Build step hierarchy with worst message severity per branch
# ============================================================================

"""
Build Step Tree.

Build reports list their steps flat, each with a nesting depth. This module
rebuilds the hierarchy and rolls the worst message severity of every branch
up to its parent, so that a failing sub-step is visible from the top level.

Severity order: Error (also Assert and Exception) > Warning > Log.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple

from build_report_inspector.models import BuildMessage, BuildStep

LOG_TYPE_LOG = "Log"
LOG_TYPE_WARNING = "Warning"
LOG_TYPE_ERROR = "Error"

ERROR_LOG_TYPES = frozenset({LOG_TYPE_ERROR, "Assert", "Exception"})

ROOT_DEPTH = -1


def worse_log_type(first: str, second: str) -> str:
    """Return the more severe of two message types, folded to Log/Warning/Error."""
    if first in ERROR_LOG_TYPES or second in ERROR_LOG_TYPES:
        return LOG_TYPE_ERROR
    if LOG_TYPE_WARNING in (first, second):
        return LOG_TYPE_WARNING
    return LOG_TYPE_LOG


@dataclass
class BuildStepNode:
    """
    A build step with its nested steps.

    Nodes without a step fill gaps where the report skips a depth level;
    their duration is the sum of their children.
    """
    step: Optional[BuildStep]
    depth: int
    children: List["BuildStepNode"] = field(default_factory=list)
    worst_log_type: str = LOG_TYPE_LOG

    def __post_init__(self) -> None:
        if self.step is not None:
            for message in self.step.messages:
                self.worst_log_type = worse_log_type(self.worst_log_type, message.type)

    @property
    def name(self) -> str:
        return self.step.name if self.step is not None else ""

    @property
    def duration(self) -> float:
        if self.step is not None:
            return self.step.duration
        return sum(child.duration for child in self.children)

    @property
    def messages(self) -> List[BuildMessage]:
        return self.step.messages if self.step is not None else []

    def update_worst_log_type(self) -> str:
        """Fold the severity of every descendant into this node and return it."""
        for child in self.children:
            self.worst_log_type = worse_log_type(self.worst_log_type, child.update_worst_log_type())
        return self.worst_log_type

    def walk(self) -> Iterator["BuildStepNode"]:
        """Yield descendants depth-first, in report order."""
        for child in self.children:
            yield child
            yield from child.walk()


def build_step_tree(steps: Iterable[BuildStep]) -> BuildStepNode:
    """
    Nest flat build steps by depth.

    Args:
        steps: Steps in report order

    Returns:
        Root node (depth -1, no step) with severities already rolled up
    """
    root = BuildStepNode(step=None, depth=ROOT_DEPTH)
    branch = [root]

    for step in steps:
        while branch[-1].depth >= step.depth:
            branch.pop()

        # Depth jumped by more than one level
        while branch[-1].depth < step.depth - 1:
            intermediate = BuildStepNode(step=None, depth=branch[-1].depth + 1)
            branch[-1].children.append(intermediate)
            branch.append(intermediate)

        node = BuildStepNode(step=step, depth=step.depth)
        branch[-1].children.append(node)
        branch.append(node)

    root.update_worst_log_type()
    return root


def format_duration(seconds: float) -> str:
    """Format a duration as H:MM:SS.mmm."""
    total_ms = int(round(seconds * 1000))
    hours, remainder = divmod(total_ms, 3600 * 1000)
    minutes, remainder = divmod(remainder, 60 * 1000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours}:{minutes:02d}:{secs:02d}.{millis:03d}"


def find_problem_steps(root: BuildStepNode) -> List[Tuple[BuildStepNode, BuildMessage]]:
    """Every warning or error message with the step that logged it, in report order."""
    problems = []
    for node in root.walk():
        for message in node.messages:
            if worse_log_type(LOG_TYPE_LOG, message.type) != LOG_TYPE_LOG:
                problems.append((node, message))
    return problems


# ============================================================================
# LIFECYCLE STATUS: Active
# DEPENDENCIES: models.py
# TESTS: tests/unit/test_steps.py
# ============================================================================
