"""Declarative rule table — regex checks for style and security issues."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from qualitygate.errors import ConfigError
from qualitygate.scanner.models import Category, Finding, Severity

_PY = (".py",)
_JS = (".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs")


@dataclass(frozen=True)
class Rule:
    """A detection rule: one regex, one check id, one category and severity."""

    check_id: str
    category: Category
    severity: Severity
    regex: re.Pattern[str]
    message: str
    extensions: tuple[str, ...] = ()

    def applies_to(self, suffix: str) -> bool:
        return not self.extensions or suffix.lower() in self.extensions


STYLE_RULES: list[Rule] = [
    Rule(
        check_id="trailing-whitespace",
        category=Category.STYLE,
        severity=Severity.INFO,
        regex=re.compile(r"\S[ \t]+$"),
        message="Trailing whitespace",
    ),
    Rule(
        check_id="tab-indent",
        category=Category.STYLE,
        severity=Severity.INFO,
        regex=re.compile(r"^\t+\S"),
        message="Tab used for indentation",
        extensions=_PY,
    ),
    Rule(
        check_id="todo-marker",
        category=Category.STYLE,
        severity=Severity.INFO,
        regex=re.compile(r"\b(?:TODO|FIXME|XXX|HACK)\b"),
        message="Unresolved TODO/FIXME marker",
    ),
    Rule(
        check_id="debug-statement",
        category=Category.STYLE,
        severity=Severity.WARNING,
        regex=re.compile(r"\b(?:breakpoint\s*\(\s*\)|pdb\.set_trace\s*\()"),
        message="Debugger breakpoint left in code",
        extensions=_PY,
    ),
    Rule(
        check_id="debug-statement",
        category=Category.STYLE,
        severity=Severity.INFO,
        regex=re.compile(r"\bconsole\.(?:log|debug)\s*\("),
        message="console.log call left in code",
        extensions=_JS,
    ),
    Rule(
        check_id="debug-statement",
        category=Category.STYLE,
        severity=Severity.WARNING,
        regex=re.compile(r"^\s*debugger\s*;?\s*$"),
        message="Debugger statement left in code",
        extensions=_JS,
    ),
    Rule(
        check_id="bare-except",
        category=Category.STYLE,
        severity=Severity.WARNING,
        regex=re.compile(r"^\s*except\s*:"),
        message="Bare except clause",
        extensions=_PY,
    ),
    Rule(
        check_id="wildcard-import",
        category=Category.STYLE,
        severity=Severity.INFO,
        regex=re.compile(r"^\s*from\s+\S+\s+import\s+\*"),
        message="Wildcard import",
        extensions=_PY,
    ),
]

SECURITY_RULES: list[Rule] = [
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(r"\bAKIA[0-9A-Z]{16}\b"),
        message="Hardcoded AWS access key",
    ),
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(
            r"DefaultEndpointsProtocol=https?;"
            r"AccountName=[^;]+;"
            r"AccountKey=[^;]+",
            re.IGNORECASE,
        ),
        message="Hardcoded Azure storage connection string",
    ),
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(r"\bsk-[a-zA-Z0-9]{20,}\b"),
        message="Hardcoded OpenAI API key",
    ),
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(r"\bgh[pousr]_[A-Za-z0-9]{36,}\b"),
        message="Hardcoded GitHub token",
    ),
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(r"\bxox[abprs]-[A-Za-z0-9-]{10,}"),
        message="Hardcoded Slack token",
    ),
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----"),
        message="Private key embedded in source",
    ),
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(
            r"(?:api[_-]?key|apikey|secret[_-]?key|auth[_-]?token|access[_-]?token)"
            r'\s*[=:]\s*["\']([a-zA-Z0-9_\-]{16,})["\']',
            re.IGNORECASE,
        ),
        message="Hardcoded API key or token",
    ),
    Rule(
        check_id="secret-pattern",
        category=Category.SECURITY,
        severity=Severity.CRITICAL,
        regex=re.compile(
            r'\b(?:password|passwd|pwd)\s*[=:]\s*["\']([^"\'\s]{4,})["\']',
            re.IGNORECASE,
        ),
        message="Hardcoded password",
    ),
    Rule(
        check_id="injection-risk",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"(?<![\w.])(?:eval|exec)\s*\("),
        message="Dynamic code execution with eval/exec",
        extensions=_PY,
    ),
    Rule(
        check_id="injection-risk",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"\bos\.(?:system|popen)\s*\("),
        message="Shell command built with os.system/os.popen",
        extensions=_PY,
    ),
    Rule(
        check_id="injection-risk",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"\bshell\s*=\s*True\b"),
        message="Subprocess invoked with shell=True",
        extensions=_PY,
    ),
    Rule(
        check_id="injection-risk",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(
            r"[\"'](?:SELECT|INSERT|UPDATE|DELETE)\b[^\"']*[\"']"
            r"\s*(?:%|\+|\.format\s*\()",
            re.IGNORECASE,
        ),
        message="SQL statement built by string concatenation or formatting",
    ),
    Rule(
        check_id="injection-risk",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(
            r"\bf[\"'](?:SELECT|INSERT|UPDATE|DELETE)\b[^\"']*\{",
            re.IGNORECASE,
        ),
        message="SQL statement built with an f-string",
        extensions=_PY,
    ),
    Rule(
        check_id="injection-risk",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"\.innerHTML\s*=|\bdocument\.write\s*\("),
        message="Unescaped HTML injection sink",
        extensions=_JS,
    ),
    Rule(
        check_id="unsafe-deserialization",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"\b(?:pickle|cPickle|marshal)\.loads?\s*\("),
        message="Deserialization of untrusted data with pickle/marshal",
        extensions=_PY,
    ),
    Rule(
        check_id="unsafe-deserialization",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"\byaml\.load\s*\((?![^)]*Loader)"),
        message="yaml.load without an explicit safe Loader",
        extensions=_PY,
    ),
    Rule(
        check_id="weak-crypto",
        category=Category.SECURITY,
        severity=Severity.INFO,
        regex=re.compile(r"\bhashlib\.(?:md5|sha1)\s*\("),
        message="Weak hash algorithm (MD5/SHA-1)",
        extensions=_PY,
    ),
    Rule(
        check_id="insecure-transport",
        category=Category.SECURITY,
        severity=Severity.INFO,
        regex=re.compile(r"http://[a-zA-Z0-9\-._~:/?#\[\]@!$&\'()*+,;=%]+"),
        message="Plain HTTP URL",
    ),
    Rule(
        check_id="insecure-transport",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"\bverify\s*=\s*False\b"),
        message="TLS certificate verification disabled",
        extensions=_PY,
    ),
    Rule(
        check_id="debug-enabled",
        category=Category.SECURITY,
        severity=Severity.WARNING,
        regex=re.compile(r"^\s*DEBUG\s*=\s*True\b"),
        message="Debug mode enabled",
        extensions=_PY,
    ),
]

DEFAULT_RULES: list[Rule] = STYLE_RULES + SECURITY_RULES


@dataclass(frozen=True)
class CheckInfo:
    """Metadata for a check implemented in code rather than in the rule table."""

    category: Category
    severity: Severity
    description: str


BUILTIN_CHECKS: dict[str, CheckInfo] = {
    "line-too-long": CheckInfo(
        Category.STYLE, Severity.INFO, "Line exceeds the maximum length"
    ),
    "high-complexity": CheckInfo(
        Category.COMPLEXITY, Severity.WARNING, "Cyclomatic complexity too high"
    ),
    "long-function": CheckInfo(
        Category.COMPLEXITY, Severity.WARNING, "Function body too long"
    ),
    "deep-nesting": CheckInfo(
        Category.COMPLEXITY, Severity.WARNING, "Blocks nested too deeply"
    ),
    "too-many-parameters": CheckInfo(
        Category.COMPLEXITY, Severity.INFO, "Too many function parameters"
    ),
    "parse-error": CheckInfo(
        Category.COMPLEXITY, Severity.WARNING, "Python source could not be parsed"
    ),
    "file-too-long": CheckInfo(
        Category.COMPLEXITY, Severity.INFO, "File has too many lines"
    ),
    "low-coverage": CheckInfo(
        Category.COVERAGE, Severity.WARNING, "Total test coverage below minimum"
    ),
    "uncovered-file": CheckInfo(
        Category.COVERAGE, Severity.INFO, "File has no test coverage"
    ),
    "coverage-report-invalid": CheckInfo(
        Category.COVERAGE, Severity.WARNING, "Coverage report could not be parsed"
    ),
    "io-error": CheckInfo(
        Category.COVERAGE, Severity.CRITICAL, "Target file could not be read"
    ),
    "scan-timeout": CheckInfo(
        Category.COVERAGE, Severity.WARNING, "Scanner timed out on a target"
    ),
    "scan-crash": CheckInfo(
        Category.COVERAGE, Severity.CRITICAL, "Scanner crashed on a target"
    ),
}

# Common false-positive patterns to exclude
EXCLUDE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"https?://(?:localhost|127\.0\.0\.1|0\.0\.0\.0)"),
    re.compile(r"https?://(?:www\.)?example\.(?:com|org|net)"),
    re.compile(r"https?://schemas\."),
    re.compile(r"https?://www\.w3\.org"),
    re.compile(r"https?://tools\.ietf\.org"),
]


def is_excluded(text: str) -> bool:
    """Check if matched text is a known false positive."""
    return any(p.search(text) for p in EXCLUDE_PATTERNS)


def builtin_finding(
    check_id: str,
    file_path: str,
    line: int,
    message: str,
    column: int = 0,
) -> Finding:
    """Create a finding for a code check with its registered category and severity."""
    info = BUILTIN_CHECKS[check_id]
    return Finding(
        check_id=check_id,
        severity=info.severity,
        category=info.category,
        file_path=file_path,
        line=line,
        column=column,
        message=message,
    )


def check_categories(rules: Iterable[Rule]) -> dict[str, Category]:
    """Build the check→category map, rejecting check ids claimed twice."""
    mapping = {check_id: info.category for check_id, info in BUILTIN_CHECKS.items()}
    for rule in rules:
        existing = mapping.setdefault(rule.check_id, rule.category)
        if existing != rule.category:
            raise ConfigError(
                f"Check '{rule.check_id}' is mapped to both "
                f"'{existing.value}' and '{rule.category.value}'"
            )
    return mapping
