"""
Debug tracing infrastructure for flowcanvas.

This module provides data structures for capturing a detailed trace of an
interaction session. When debug mode is enabled, the controller records
every handler call with the state before and after it, plus every
structural change it reported to the application.

This is primarily useful for:
1. Debugging gesture issues (why a drag or connection did not take effect)
2. Understanding the state machine flow (seeing each transition)
3. Writing targeted tests (verifying specific notifications)

Usage:
    >>> controller = InteractionController(nodes, edges, debug=True)
    >>> controller.output_press("A", 0)
    >>> controller.input_release("B", 0)
    >>> trace = controller.get_trace()
    >>> print(trace.summary())
    >>> trace.dump_to_file("interaction_trace.txt")
"""

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class TransitionRecord:
    """
    Record of one handler call.

    Attributes:
        event: Handler name (e.g., "pointer_move", "input_release")
        before: State name before the call
        after: State name after the call
        detail: Free-form description of what happened
    """

    event: str
    before: str
    after: str
    detail: str = ""

    def __str__(self) -> str:
        text = f"{self.event}: {self.before} -> {self.after}"
        if self.detail:
            text += f" [{self.detail}]"
        return text


@dataclass
class StructuralChange:
    """
    Record of one notification sent to the application.

    Attributes:
        kind: "nodes", "edges" or "layout"
        count: Length of the list that was sent (node or edge count)
    """

    kind: str
    count: int

    def __str__(self) -> str:
        return f"{self.kind} changed ({self.count})"


@dataclass
class InteractionTrace:
    """
    Complete trace of an interaction session.

    Attributes:
        transitions: Every recorded handler call, in order
        changes: Every structural notification, in order
    """

    transitions: List[TransitionRecord] = field(default_factory=list)
    changes: List[StructuralChange] = field(default_factory=list)

    def add_transition(
        self, event: str, before: str, after: str, detail: str = ""
    ) -> None:
        self.transitions.append(TransitionRecord(event, before, after, detail))

    def add_change(self, kind: str, count: int) -> None:
        self.changes.append(StructuralChange(kind, count))

    def get_transitions(self, event: str) -> List[TransitionRecord]:
        """Get all transitions recorded for one handler."""
        return [t for t in self.transitions if t.event == event]

    def get_changes(self, kind: str) -> List[StructuralChange]:
        """Get all structural changes of one kind."""
        return [c for c in self.changes if c.kind == kind]

    def summary(self) -> str:
        """
        Generate a human-readable summary of the trace.

        Returns a string with handler call counts and structural change
        counts.
        """
        lines = [
            "=" * 60,
            "INTERACTION TRACE SUMMARY",
            "=" * 60,
            "",
            f"Handler calls: {len(self.transitions)}",
        ]

        event_counts: Dict[str, int] = {}
        for t in self.transitions:
            event_counts[t.event] = event_counts.get(t.event, 0) + 1
        for event, count in sorted(event_counts.items(), key=lambda x: -x[1]):
            lines.append(f"  {event}: {count}")

        lines.extend(["", f"Structural changes: {len(self.changes)}"])
        for change in self.changes:
            lines.append(f"  {change}")

        return "\n".join(lines)

    def dump(self) -> str:
        """
        Generate a complete human-readable dump of the trace.

        Pointer moves are included, so long drags produce long dumps.
        """
        lines = [self.summary(), "", "=" * 60, "DETAILED TRACE", "=" * 60, ""]
        for t in self.transitions:
            lines.append(str(t))
        return "\n".join(lines)

    def dump_to_file(self, filename: str) -> None:
        """Write the complete trace dump to a file."""
        with open(filename, "w", encoding="utf-8") as f:
            f.write(self.dump())
