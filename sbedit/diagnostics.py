"""Diagnostic messages for the sb3 codec.

Conditions the codec can recover from (a call to an undefined custom block,
a variable name that resolves nowhere, a cyclic ``next`` chain, a slot with no
wire metadata) are recorded here rather than raised. Each diagnostic names
the target it arose in and, where there is one, the offending block id.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DiagnosticLevel(Enum):
    """Severity level for diagnostic messages."""
    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    level: DiagnosticLevel
    message: str
    target: str
    block_id: Optional[str] = None

    def __str__(self) -> str:
        loc = f"Target '{self.target}'"
        if self.block_id is not None:
            loc += f" Block {self.block_id}"
        return f"{self.level.value}: {self.message}: {loc}"


@dataclass
class DiagnosticContext:
    """Diagnostics raised while coding one target."""
    target_name: str = "Stage"
    current_block_id: Optional[str] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def set_block(self, block_id: Optional[str]) -> None:
        """Set the block that subsequent diagnostics refer to."""
        self.current_block_id = block_id

    def add(self, level: DiagnosticLevel, message: str, block_id: Optional[str] = None) -> None:
        """Add a diagnostic message."""
        self.diagnostics.append(Diagnostic(
            level=level,
            message=message,
            target=self.target_name,
            block_id=block_id if block_id is not None else self.current_block_id,
        ))

    def error(self, message: str, block_id: Optional[str] = None) -> None:
        """Add an error diagnostic."""
        self.add(DiagnosticLevel.ERROR, message, block_id)

    def warning(self, message: str, block_id: Optional[str] = None) -> None:
        """Add a warning diagnostic."""
        self.add(DiagnosticLevel.WARNING, message, block_id)

    def info(self, message: str, block_id: Optional[str] = None) -> None:
        """Add an info diagnostic."""
        self.add(DiagnosticLevel.INFO, message, block_id)

    def has_errors(self) -> bool:
        """Check if any error diagnostics have been recorded."""
        return any(d.level == DiagnosticLevel.ERROR for d in self.diagnostics)

    def has_warnings(self) -> bool:
        """Check if any warning diagnostics have been recorded."""
        return any(d.level == DiagnosticLevel.WARNING for d in self.diagnostics)

    def get_errors(self) -> List[Diagnostic]:
        """Get all error diagnostics."""
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.ERROR]

    def get_warnings(self) -> List[Diagnostic]:
        """Get all warning diagnostics."""
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.WARNING]

    def print_all(self) -> None:
        """Print all diagnostics to stdout."""
        for diag in self.diagnostics:
            print(diag)

    def summary(self) -> str:
        """Return a summary of diagnostics."""
        return _summarize(self.diagnostics)


class DiagnosticCollector:
    """Collector for diagnostics across every target of a project."""

    def __init__(self) -> None:
        self.all_diagnostics: List[Diagnostic] = []

    def add_context_diagnostics(self, ctx: DiagnosticContext) -> None:
        """Add all diagnostics from a context."""
        self.all_diagnostics.extend(ctx.diagnostics)

    def for_target(self, target_name: str) -> List[Diagnostic]:
        """Get the diagnostics raised for one target."""
        return [d for d in self.all_diagnostics if d.target == target_name]

    def has_errors(self) -> bool:
        """Check if any error diagnostics have been recorded."""
        return any(d.level == DiagnosticLevel.ERROR for d in self.all_diagnostics)

    def has_warnings(self) -> bool:
        """Check if any warning diagnostics have been recorded."""
        return any(d.level == DiagnosticLevel.WARNING for d in self.all_diagnostics)

    def print_all(self) -> None:
        """Print all diagnostics to stdout."""
        for diag in self.all_diagnostics:
            print(diag)

    def summary(self) -> str:
        """Return a summary of diagnostics."""
        return _summarize(self.all_diagnostics)


def _summarize(diagnostics: List[Diagnostic]) -> str:
    errors = sum(1 for d in diagnostics if d.level == DiagnosticLevel.ERROR)
    warnings = sum(1 for d in diagnostics if d.level == DiagnosticLevel.WARNING)
    parts = []
    if errors:
        parts.append(f"{errors} error{'s' if errors != 1 else ''}")
    if warnings:
        parts.append(f"{warnings} warning{'s' if warnings != 1 else ''}")
    return ", ".join(parts) if parts else "No issues"
