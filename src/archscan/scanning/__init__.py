"""Source scanning: scope tracking and declaration extraction.

The scanner itself lives in ``archscan.scanning.scanner``; it is not
re-exported here because it depends on the rules package, which depends
on these models.
"""

from .extractor import DeclarationExtractor
from .models import (
    UNKNOWN_NAMESPACE,
    ContainerKind,
    Declaration,
    DeclarationKind,
    FileDeclarations,
    LineScope,
    ScopeFrame,
    ScopePoint,
    SourceUnit,
)
from .scope import SCOPE_MODES, EnterContainer, ExitContainer, ScopeTracker

__all__ = [
    "UNKNOWN_NAMESPACE",
    "SCOPE_MODES",
    "ContainerKind",
    "Declaration",
    "DeclarationExtractor",
    "DeclarationKind",
    "EnterContainer",
    "ExitContainer",
    "FileDeclarations",
    "LineScope",
    "ScopeFrame",
    "ScopePoint",
    "ScopeTracker",
    "SourceUnit",
]
