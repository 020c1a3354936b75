"""Keyword and line-count heuristics over the chunks of a single file.

These reports are cheap approximations: complexity is derived from line
counts, design patterns and security issues from lower-cased keywords.
Related-file lookups and generated documentation live here as well.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from code_xref.storage.models import ChunkKind

if TYPE_CHECKING:
    from code_xref.storage.models import CodeChunk, VectorHit


class AnalysisType(StrEnum):
    COMPLEXITY = "complexity"
    DEPENDENCIES = "dependencies"
    PATTERNS = "patterns"
    SECURITY = "security"
    GENERAL = "general"


class ComplexityReport(BaseModel):
    total_complexity: float
    function_count: int
    class_count: int
    average_complexity: float


class DependencyReport(BaseModel):
    dependency_count: int
    dependencies: list[str]


class PatternReport(BaseModel):
    singleton: bool = False
    factory: bool = False
    observer: bool = False
    strategy: bool = False


class SecurityReport(BaseModel):
    security_issues: list[str]
    security_score: int


class GeneralReport(BaseModel):
    chunk_kinds: list[str]
    total_lines: int
    chunk_count: int


ContextReport = ComplexityReport | DependencyReport | PatternReport | SecurityReport | GeneralReport

# pattern -> keywords, any of which marks the pattern as present
PATTERN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "singleton": ("getinstance", "singleton"),
    "factory": ("factory", "create"),
    "observer": ("observer", "notify"),
    "strategy": ("strategy", "algorithm"),
}

PLAINTEXT_PASSWORD = "Potential plaintext password handling"
DANGEROUS_EVAL = "Use of dangerous evaluation functions"
SQL_INJECTION = "Potential SQL injection vulnerability"


def complexity_report(chunks: list[CodeChunk]) -> ComplexityReport:
    total = 0.0
    functions = classes = 0
    for chunk in chunks:
        if chunk.kind in (ChunkKind.FUNCTION, ChunkKind.METHOD):
            functions += 1
            total += max(1.0, (chunk.end_line - chunk.start_line) / 10)
        elif chunk.kind in (ChunkKind.CLASS, ChunkKind.INTERFACE):
            classes += 1
    return ComplexityReport(
        total_complexity=round(total, 1),
        function_count=functions,
        class_count=classes,
        average_complexity=round(total / functions, 1) if functions else 0.0,
    )


def dependency_report(chunks: list[CodeChunk]) -> DependencyReport:
    names = list(dict.fromkeys(str(d) for chunk in chunks for d in chunk.dependencies))
    return DependencyReport(dependency_count=len(names), dependencies=names)


def pattern_report(chunks: list[CodeChunk]) -> PatternReport:
    found: dict[str, bool] = dict.fromkeys(PATTERN_KEYWORDS, False)
    for chunk in chunks:
        content = chunk.content.lower()
        for pattern, keywords in PATTERN_KEYWORDS.items():
            if any(k in content for k in keywords):
                found[pattern] = True
    return PatternReport(**found)


def security_report(chunks: list[CodeChunk]) -> SecurityReport:
    """One issue per matching chunk and rule; each issue costs 20 points."""
    issues: list[str] = []
    for chunk in chunks:
        content = chunk.content.lower()
        if "password" in content and "hash" not in content:
            issues.append(PLAINTEXT_PASSWORD)
        if "eval(" in content or "exec(" in content:
            issues.append(DANGEROUS_EVAL)
        if "sql" in content and "concat" in content:
            issues.append(SQL_INJECTION)
    return SecurityReport(security_issues=issues, security_score=max(0, 100 - 20 * len(issues)))


def general_report(chunks: list[CodeChunk]) -> GeneralReport:
    return GeneralReport(
        chunk_kinds=list(dict.fromkeys(str(c.kind) for c in chunks)),
        total_lines=sum(c.end_line - c.start_line for c in chunks),
        chunk_count=len(chunks),
    )


_REPORTS = {
    AnalysisType.COMPLEXITY: complexity_report,
    AnalysisType.DEPENDENCIES: dependency_report,
    AnalysisType.PATTERNS: pattern_report,
    AnalysisType.SECURITY: security_report,
    AnalysisType.GENERAL: general_report,
}


def analyze_chunks(chunks: list[CodeChunk], analysis_type: AnalysisType) -> ContextReport:
    return _REPORTS[analysis_type](chunks)


# ---------------------------------------------------------------------------
# Related files
# ---------------------------------------------------------------------------


class Relationship(StrEnum):
    SIMILAR = "similar"
    DEPENDENT = "dependent"
    REFERENCED = "referenced"


class RelatedFile(BaseModel):
    """A file related to the analysed one.

    ``link`` says how: ``similar`` (with a ``similarity`` score), ``direct``
    for a chunk dependency, or ``import`` for an import path.
    """

    file_path: str
    link: str
    similarity: float | None = None


_IMPORT_FROM = re.compile(r"""from\s+['"]([^'"]+)['"]""")


def dependent_files(chunks: list[CodeChunk]) -> list[RelatedFile]:
    """Every distinct dependency named by the file's chunks."""
    names = dict.fromkeys(str(d) for chunk in chunks for d in chunk.dependencies)
    return [RelatedFile(file_path=name, link="direct") for name in names]


def referenced_files(chunks: list[CodeChunk]) -> list[RelatedFile]:
    """Module paths of ``from '...'`` imports found in the file's chunks."""
    paths = dict.fromkeys(p for chunk in chunks for p in _IMPORT_FROM.findall(chunk.content))
    return [RelatedFile(file_path=path, link="import") for path in paths]


def similar_files(
    hits: list[VectorHit],
    exclude: str,
    threshold: float,
) -> list[RelatedFile]:
    """Best score per other file among hits scoring above ``threshold``, highest first."""
    best: dict[str, float] = {}
    for hit in hits:
        if hit.file_path == exclude or hit.similarity <= threshold:
            continue
        best[hit.file_path] = max(best.get(hit.file_path, 0.0), hit.similarity)
    ranked = sorted(best.items(), key=lambda item: item[1], reverse=True)
    return [RelatedFile(file_path=p, link="similar", similarity=round(s, 2)) for p, s in ranked]


# ---------------------------------------------------------------------------
# Documentation
# ---------------------------------------------------------------------------

_FUNCTION_MARKERS = ("function", "=>", "def ")
_CLASS_MARKERS = ("class ", "interface ")


def generate_documentation(code: str) -> str:
    """Markdown skeleton for a snippet: the code, what it declares, and its size."""
    has_functions = any(m in code for m in _FUNCTION_MARKERS)
    has_classes = any(m in code for m in _CLASS_MARKERS)
    lines = code.count("\n") + 1

    parts = [f"```\n{code}\n```\n"]
    if has_functions:
        parts.append("## Functions\nThis code contains function definitions.\n")
    if has_classes:
        parts.append("## Classes\nThis code contains class definitions.\n")
    parts.append(
        "## Overview\n"
        f"- **Lines of Code**: {lines}\n"
        f"- **Contains Functions**: {'Yes' if has_functions else 'No'}\n"
        f"- **Contains Classes**: {'Yes' if has_classes else 'No'}\n"
    )
    return "\n".join(parts)
