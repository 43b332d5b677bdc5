"""
archscan - Architecture conformance scanning for C# source trees

Reconstructs declaration nesting from brace depth, checks placement, naming
and uniqueness rules, finds overlapping enums and DTO shapes, and renders a
deterministic report.
"""

__version__ = "0.1.0"

from .api import check, scan
from .file_ops import find_solution_root
from .report import Report
from .rules import RuleEngine, RuleMode, Severity, Violation
from .scanning import Declaration, DeclarationExtractor, ScopeTracker

__all__ = [
    "scan",  # Main entry point
    "check",  # Test-gate helper
    "find_solution_root",
    "Declaration",
    "DeclarationExtractor",
    "Report",
    "RuleEngine",
    "RuleMode",
    "ScopeTracker",
    "Severity",
    "Violation",
]
