"""
Homebrew formula reader — turns a ``.rb`` formula into a PackageFormula.

Reads the subset of the formula DSL that simple script formulae use;
Ruby is never evaluated.  Recognised:

    class Name < Formula
    desc / homepage / url / sha256 / license / version  "..."
    depends_on "tool"  [=> :build]
    def install
      <root>.install "src" => "name"       → copy
      <root>.install Dir["*"]              → copy (whole root)
      (<root>/"name").write <<~EOS ... EOS → write
      (<root>/"name").chmod 0755           → chmod
      mv "a", "b"                          → move
      bash_completion.install ...          → register_completion
    def caveats  <<~EOS ... EOS            → post-install message
    test do
      assert_match "X", shell_output("#{bin}/tool --help")

Unrecognised lines inside ``def install`` are logged at DEBUG and
skipped.
"""

from __future__ import annotations

import logging
import posixpath
import re
import textwrap

from brewcheck.core.models import INSTALL_ROOTS, InstallStep, PackageFormula, SmokeTest
from brewcheck.core.parsers.errors import FormulaLoadError
from brewcheck.core.services.formula_validate import extract_url_version, normalize_version

logger = logging.getLogger(__name__)

# ── Patterns ────────────────────────────────────────────────────

# A double-quoted Ruby string literal (group = contents)
_STR = r'"((?:[^"\\]|\\.)*)"'

_CLASS_RE = re.compile(r"^class\s+(\w+)\s*<\s*Formula\b")
_FIELD_RE = re.compile(
    rf"^(desc|homepage|url|sha256|sha512|sha1|license|version)\s*\(?\s*{_STR}"
)
_DEPENDS_RE = re.compile(rf"^depends_on\s+{_STR}")
_DEF_RE = re.compile(r"^def\s+(install|caveats)\b")
_TEST_RE = re.compile(r"^test\s+do\b")
_END_RE = re.compile(r"^end\b")
_BLOCK_OPEN_RE = re.compile(r"^(?:if|unless|case|while|until|begin|def)\b")
_DO_RE = re.compile(r"\bdo\b(?:\s*\|[^|]*\|)?\s*$")
_HEREDOC_RE = re.compile(r"<<([~-]?)(['\"]?)([A-Z_][A-Z0-9_]*)\2")

_ROOT_INSTALL_RE = re.compile(r"^(\w+)\.install\s+(.+)$")
_WRITE_RE = re.compile(r'^\((\w+)\s*/\s*"([^"]+)"\)\.(?:write|atomic_write)\b')
_CHMOD_RE = re.compile(r'^\((\w+)\s*/\s*"([^"]+)"\)\.chmod\s+(0o?[0-7]+|\d+)')
_CHMOD_CALL_RE = re.compile(r"^(?:FileUtils\.)?chmod\s+(0o?[0-7]+|\d+)\s*,\s*(.+)$")
_MV_RE = re.compile(r"^(?:FileUtils\.)?mv\s+(.+?)\s*,\s*(.+)$")

_ASSERT_RE = re.compile(
    r"assert_match\s*\(?\s*(?:" + _STR + r"|/((?:[^/\\]|\\.)*)/)\s*,\s*"
    r"shell_output\(\s*" + _STR
)
_SYSTEM_RE = re.compile(r"^system\s+" + _STR + r"((?:\s*,\s*" + r'"[^"]*"' + r")*)")

# Completion roots → shell dialect
_COMPLETION_ROOTS = {
    "bash_completion": "bash",
    "zsh_completion": "zsh",
    "fish_completion": "fish",
}

_PATH_EXPR_RE = re.compile(r'^(?:(\w+)\s*/\s*)?' + _STR + r"$")
_DIR_GLOB_RE = re.compile(r'^Dir\[\s*(?:(\w+)\s*/\s*)?' + _STR + r"\s*\]$")


# ── Helpers ─────────────────────────────────────────────────────


def _unescape(s: str) -> str:
    return s.replace('\\"', '"').replace("\\\\", "\\")


def _path_expr(expr: str) -> str | None:
    """Resolve ``"a"``, ``libexec/"a"`` or ``Dir["*"]`` to a path string."""
    expr = expr.strip()
    m = _DIR_GLOB_RE.match(expr)
    if m:
        root, pattern = m.group(1), _unescape(m.group(2))
        return f"{root}/{pattern}" if root and root != "buildpath" else pattern
    m = _PATH_EXPR_RE.match(expr)
    if m:
        root, name = m.group(1), _unescape(m.group(2))
        return f"{root}/{name}" if root and root != "buildpath" else name
    return None


def _split_args(args: str) -> list[str]:
    """Split a Ruby argument list on commas outside quotes/brackets."""
    parts, buf, depth, in_str = [], [], 0, False
    prev = ""
    for ch in args:
        if ch == '"' and prev != "\\":
            in_str = not in_str
        elif not in_str and ch in "[(":
            depth += 1
        elif not in_str and ch in "])":
            depth -= 1
        if ch == "," and not in_str and depth == 0:
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
        prev = ch
    if buf:
        parts.append("".join(buf).strip())
    return [p for p in parts if p]


def _octal_mode(token: str) -> str:
    """Ruby ``0755`` / ``0o755`` → ``"0755"``."""
    return "0" + token[2:] if token.startswith("0o") else token


def _read_heredoc(lines: list[str], start: int, tag: str, squiggly: bool) -> tuple[str, int]:
    """Collect heredoc body lines until ``tag``.

    Returns:
        (body, index of the terminator line)
    """
    body: list[str] = []
    i = start
    while i < len(lines) and lines[i].strip() != tag:
        body.append(lines[i])
        i += 1
    text = "\n".join(body)
    if squiggly:
        text = textwrap.dedent(text)
    return text.strip("\n"), i


# ── Install-line parsing ────────────────────────────────────────


def _parse_root_install(root: str, args: str) -> list[InstallStep]:
    """Steps for ``<root>.install <args>``."""
    steps: list[InstallStep] = []
    shell = _COMPLETION_ROOTS.get(root)
    if shell is None and root not in INSTALL_ROOTS:
        return steps

    for arg in _split_args(args):
        target: str | None = None
        if "=>" in arg:
            left, right = arg.split("=>", 1)
            source = _path_expr(left)
            target = _path_expr(right)
        else:
            source = _path_expr(arg)
        if source is None:
            logger.debug("Unrecognised install argument: %s", arg)
            continue

        if shell is not None:
            name = target or posixpath.basename(source)
            steps.append(InstallStep(
                op="register_completion", path=f"{root}/{name}",
                source=source, shell=shell,
            ))
        elif "*" in source and target is None:
            steps.append(InstallStep(op="copy", path=root, source=source))
        else:
            name = target or posixpath.basename(source.rstrip("/"))
            steps.append(InstallStep(op="copy", path=f"{root}/{name}", source=source))
    return steps


def _parse_install_line(stripped: str) -> list[InstallStep]:
    m = _ROOT_INSTALL_RE.match(stripped)
    if m:
        return _parse_root_install(m.group(1), m.group(2))

    m = _WRITE_RE.match(stripped)
    if m:
        return [InstallStep(op="write", path=f"{m.group(1)}/{m.group(2)}")]

    m = _CHMOD_RE.match(stripped)
    if m:
        return [InstallStep(
            op="chmod", path=f"{m.group(1)}/{m.group(2)}", mode=_octal_mode(m.group(3)),
        )]

    m = _CHMOD_CALL_RE.match(stripped)
    if m:
        path = _path_expr(m.group(2))
        if path:
            return [InstallStep(op="chmod", path=path, mode=_octal_mode(m.group(1)))]

    m = _MV_RE.match(stripped)
    if m:
        src, dst = _path_expr(m.group(1)), _path_expr(m.group(2))
        if src and dst:
            return [InstallStep(op="move", path=dst, source=src)]

    logger.debug("Skipping install line: %s", stripped)
    return []


def _parse_test_line(stripped: str) -> SmokeTest | None:
    m = _ASSERT_RE.search(stripped)
    if m:
        expect = m.group(1) if m.group(1) is not None else m.group(2)
        return SmokeTest(command=_unescape(m.group(3)), expect_substring=_unescape(expect))

    m = _SYSTEM_RE.match(stripped)
    if m:
        extra = re.findall(_STR, m.group(2) or "")
        command = " ".join([_unescape(m.group(1)), *(_unescape(a) for a in extra)])
        return SmokeTest(command=command, expect_substring="")
    return None


# ── Public API ──────────────────────────────────────────────────


def parse_formula_rb(text: str, source: str = "<string>") -> PackageFormula:
    """Parse Homebrew formula source into a PackageFormula.

    Args:
        text: Contents of the ``.rb`` file.
        source: Name used in log and error messages.

    Returns:
        The formula record.  Only the first ``Formula`` class in the
        file is read.

    Raises:
        FormulaLoadError: If no ``class X < Formula`` is found.
    """
    lines = text.splitlines()
    fields: dict[str, str] = {}
    dependencies: set[str] = set()
    steps: list[InstallStep] = []
    caveats = ""
    smoke: SmokeTest | None = None
    class_name = ""

    section: str | None = None
    depth = 0
    i = 0
    while i < len(lines):
        stripped = lines[i].strip()
        if not stripped or stripped.startswith("#"):
            i += 1
            continue

        heredoc = _HEREDOC_RE.search(stripped)
        body = ""
        next_i = i + 1
        if heredoc:
            body, end_i = _read_heredoc(
                lines, i + 1, heredoc.group(3), squiggly=heredoc.group(1) == "~",
            )
            next_i = end_i + 1

        if section is None:
            m = _CLASS_RE.match(stripped)
            if m:
                if class_name:
                    logger.warning(
                        "%s: second formula class '%s' ignored", source, m.group(1),
                    )
                    break
                class_name = m.group(1)
            elif (m := _FIELD_RE.match(stripped)):
                key, value = m.group(1), _unescape(m.group(2))
                if key in ("sha256", "sha512", "sha1"):
                    fields["checksum"] = value
                    fields["checksum_algorithm"] = key
                else:
                    fields.setdefault(key, value)
            elif (m := _DEPENDS_RE.match(stripped)):
                dependencies.add(_unescape(m.group(1)))
            elif (m := _DEF_RE.match(stripped)):
                section, depth = m.group(1), 1
            elif _TEST_RE.match(stripped):
                section, depth = "test", 1
            elif _DO_RE.search(stripped):
                # resource / bottle / livecheck blocks carry their own url and sha256
                section, depth = "skip", 1
            i = next_i
            continue

        if _END_RE.match(stripped):
            depth -= 1
            if depth == 0:
                section = None
            i = next_i
            continue
        if _BLOCK_OPEN_RE.match(stripped) or _DO_RE.search(stripped):
            depth += 1

        if section == "install":
            steps.extend(_parse_install_line(stripped))
        elif section == "caveats":
            if heredoc:
                caveats = body
            elif (m := re.match(_STR, stripped)):
                caveats = _unescape(m.group(1))
        elif section == "test" and smoke is None:
            smoke = _parse_test_line(stripped)

        i = next_i

    if not class_name:
        raise FormulaLoadError(f"{source}: no 'class <Name> < Formula' definition found")

    version = fields.get("version", "")
    if not version and fields.get("url"):
        token = extract_url_version(fields["url"])
        version = normalize_version(token) if token else ""

    formula = PackageFormula(
        class_name=class_name,
        description=fields.get("desc", ""),
        homepage=fields.get("homepage", ""),
        source_url=fields.get("url", ""),
        checksum=fields.get("checksum", ""),
        checksum_algorithm=fields.get("checksum_algorithm", ""),
        license=fields.get("license", ""),
        version=version,
        dependencies=frozenset(dependencies),
        install_steps=tuple(steps),
        post_install_message=caveats,
        smoke_test=smoke,
    )
    logger.info(
        "Parsed formula %s from %s (%d install steps)",
        class_name, source, len(steps),
    )
    return formula
