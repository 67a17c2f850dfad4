"""Complexity scanner — stdlib ast metrics for Python, length for everything."""

from __future__ import annotations

import ast
import logging
from pathlib import Path

from qualitygate.scanner.checks.base import FileScanner
from qualitygate.scanner.models import Category, Finding, ScanConfig
from qualitygate.scanner.rules import builtin_finding

logger = logging.getLogger(__name__)

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)
_SCOPE_NODES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)
_BRANCH_NODES = (
    ast.If,
    ast.For,
    ast.AsyncFor,
    ast.While,
    ast.IfExp,
    ast.ExceptHandler,
    ast.comprehension,
    ast.Assert,
)
_BLOCK_NODES = (
    ast.If,
    ast.For,
    ast.AsyncFor,
    ast.While,
    ast.With,
    ast.AsyncWith,
    ast.Try,
) + ((ast.Match,) if hasattr(ast, "Match") else ())


class ComplexityScanner(FileScanner):
    """Function-level complexity for Python sources and file length for all."""

    name = "complexity"
    category = Category.COMPLEXITY

    def check(self, content: str, path: Path, config: ScanConfig) -> list[Finding]:
        file_path = str(path)
        findings: list[Finding] = []

        line_count = len(content.splitlines())
        if line_count > config.max_file_lines:
            findings.append(
                builtin_finding(
                    "file-too-long",
                    file_path,
                    1,
                    f"File has {line_count} lines (limit {config.max_file_lines})",
                )
            )

        if path.suffix.lower() != ".py":
            return findings

        try:
            tree = ast.parse(content)
        except SyntaxError as e:
            logger.debug("AST parse failed for %s: %s", file_path, e)
            findings.append(
                builtin_finding(
                    "parse-error",
                    file_path,
                    e.lineno or 0,
                    f"Syntax error: {e.msg}",
                )
            )
            return findings

        for node in ast.walk(tree):
            if isinstance(node, _FUNCTION_NODES):
                findings.extend(_analyze_function(node, file_path, config))

        return findings


def _analyze_function(
    node: ast.FunctionDef | ast.AsyncFunctionDef,
    file_path: str,
    config: ScanConfig,
) -> list[Finding]:
    findings: list[Finding] = []
    name = node.name

    complexity = cyclomatic_complexity(node)
    if complexity > config.max_complexity:
        findings.append(
            builtin_finding(
                "high-complexity",
                file_path,
                node.lineno,
                f"'{name}' has cyclomatic complexity {complexity} "
                f"(limit {config.max_complexity})",
            )
        )

    length = (node.end_lineno or node.lineno) - node.lineno + 1
    if length > config.max_function_length:
        findings.append(
            builtin_finding(
                "long-function",
                file_path,
                node.lineno,
                f"'{name}' is {length} lines long "
                f"(limit {config.max_function_length})",
            )
        )

    depth, deepest_line = nesting_depth(node)
    if depth > config.max_nesting:
        findings.append(
            builtin_finding(
                "deep-nesting",
                file_path,
                deepest_line,
                f"'{name}' nests blocks {depth} levels deep "
                f"(limit {config.max_nesting})",
            )
        )

    params = parameter_count(node)
    if params > config.max_parameters:
        findings.append(
            builtin_finding(
                "too-many-parameters",
                file_path,
                node.lineno,
                f"'{name}' takes {params} parameters "
                f"(limit {config.max_parameters})",
            )
        )

    return findings


def _body_nodes(func: ast.AST):
    """Yield nodes inside a function without descending into nested scopes."""
    stack = list(ast.iter_child_nodes(func))
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, _SCOPE_NODES):
            continue
        stack.extend(ast.iter_child_nodes(node))


def cyclomatic_complexity(func: ast.FunctionDef | ast.AsyncFunctionDef) -> int:
    """McCabe complexity: one plus the number of decision points."""
    complexity = 1
    for node in _body_nodes(func):
        if isinstance(node, _SCOPE_NODES):
            continue
        if isinstance(node, _BRANCH_NODES):
            complexity += 1
            if isinstance(node, ast.comprehension):
                complexity += len(node.ifs)
        elif isinstance(node, ast.BoolOp):
            complexity += len(node.values) - 1
        elif hasattr(ast, "match_case") and isinstance(node, ast.match_case):
            complexity += 1
    return complexity


def nesting_depth(func: ast.FunctionDef | ast.AsyncFunctionDef) -> tuple[int, int]:
    """Deepest block nesting inside a function and the line where it occurs."""
    best = (0, func.lineno)

    def visit(node: ast.AST, depth: int) -> None:
        nonlocal best
        for child in ast.iter_child_nodes(node):
            if isinstance(child, _SCOPE_NODES):
                continue
            if isinstance(child, _BLOCK_NODES) and not _is_elif(node, child):
                if depth + 1 > best[0]:
                    best = (depth + 1, child.lineno)
                visit(child, depth + 1)
            else:
                visit(child, depth)

    visit(func, 0)
    return best


def _is_elif(parent: ast.AST, child: ast.AST) -> bool:
    return (
        isinstance(parent, ast.If)
        and isinstance(child, ast.If)
        and len(parent.orelse) == 1
        and parent.orelse[0] is child
    )


def parameter_count(func: ast.FunctionDef | ast.AsyncFunctionDef) -> int:
    args = func.args
    names = [a.arg for a in args.posonlyargs + args.args + args.kwonlyargs]
    if args.vararg:
        names.append(args.vararg.arg)
    if args.kwarg:
        names.append(args.kwarg.arg)
    if names and names[0] in ("self", "cls"):
        names = names[1:]
    return len(names)

