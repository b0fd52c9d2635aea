"""
Groovy source scanning.

This module extracts what the compiler needs to know about a Groovy file
without running the compiler:
- The package declaration
- Fully-qualified names of top-level classes, interfaces, enums, traits and
  annotation types
- The implicit script class of files with top-level statements

The scanner strips comments and string literals, keeps only text at brace
depth zero, and matches declarations with regular expressions.
"""

import re
from pathlib import Path
from typing import List, Optional

_TRIPLE_QUOTED = re.compile(r"'''.*?'''|\"\"\".*?\"\"\"", re.DOTALL)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_STRING = re.compile(r"'(?:\\.|[^'\\\n])*'|\"(?:\\.|[^\"\\\n])*\"")
_LINE_COMMENT = re.compile(r"//[^\n]*")
_SHEBANG = re.compile(r"\A#![^\n]*")

_PACKAGE = re.compile(r"^\s*package\s+([\w.]+)\s*;?", re.MULTILINE)
_IMPORT = re.compile(r"^\s*import\s+(?:static\s+)?[\w.*]+(?:\s+as\s+\w+)?\s*;?", re.MULTILINE)
_TYPE_DECLARATION = re.compile(
    r"(?:@\w+(?:\.\w+)*(?:\([^)]*\))?\s*)*"
    r"(?:\b(?:public|protected|private|abstract|final|static|strictfp|sealed|non-sealed)\s+)*"
    r"(?:\bclass|\binterface|@interface|\benum|\btrait|\brecord)\s+(\w+)[^{}]*\{\}"
)


class SourceScanError(Exception):
    """Raised when a source file cannot be read."""

    pass


class GroovySourceScanner:
    """Finds the top-level types a Groovy file declares.

    Usage:
        scanner = GroovySourceScanner()
        scanner.scan_file(Path("src/com/x/A.groovy"))  # ['com.x.A']
    """

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize the scanner.

        Args:
            encoding: Source file encoding
        """
        self.encoding = encoding

    @staticmethod
    def strip_noise(text: str) -> str:
        """Remove comments and string literals."""
        text = _SHEBANG.sub("", text)
        text = _TRIPLE_QUOTED.sub("''", text)
        text = _BLOCK_COMMENT.sub(" ", text)
        text = _STRING.sub("''", text)
        text = _LINE_COMMENT.sub("", text)
        return text

    @staticmethod
    def top_level_text(text: str) -> str:
        """Keep text at brace depth zero; each top-level body becomes ``{}``."""
        depth = 0
        kept = []
        for ch in text:
            if ch == "{":
                if depth == 0:
                    kept.append("{")
                depth += 1
            elif ch == "}":
                if depth > 0:
                    depth -= 1
                    if depth == 0:
                        kept.append("}")
            elif depth == 0:
                kept.append(ch)
        return "".join(kept)

    def scan_text(self, text: str, script_name: Optional[str] = None) -> List[str]:
        """Get fully-qualified top-level type names declared in source text.

        Args:
            text: Groovy source
            script_name: Class name used for top-level statements (usually
                the file stem); scripts are ignored when None

        Returns:
            Type names in declaration order
        """
        top_level = self.top_level_text(self.strip_noise(text))

        package_match = _PACKAGE.search(top_level)
        prefix = f"{package_match.group(1)}." if package_match else ""

        names = [f"{prefix}{match.group(1)}" for match in _TYPE_DECLARATION.finditer(top_level)]

        if script_name:
            remainder = _TYPE_DECLARATION.sub("", top_level)
            remainder = _PACKAGE.sub("", remainder)
            remainder = _IMPORT.sub("", remainder)
            if remainder.replace(";", "").strip():
                script_class = f"{prefix}{script_name}"
                if script_class not in names:
                    names.append(script_class)

        return names

    def scan_file(self, path: Path) -> List[str]:
        """Get fully-qualified top-level type names declared in a file.

        Raises:
            SourceScanError: If the file cannot be read
        """
        path = Path(path)
        try:
            text = path.read_text(encoding=self.encoding, errors="replace")
        except OSError as e:
            raise SourceScanError(f"Failed to read {path}: {e}") from e
        return self.scan_text(text, script_name=path.stem)
