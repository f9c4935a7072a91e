"""
Lightweight metadata extraction from C# and ASP.NET markup source files.

Everything here is a regular-expression pass over the raw text. The patterns
and the keyword stoplist are plain module data so they can be tuned and tested
without going through the repository walker.
"""
import os
import re
from typing import Iterable, List, Optional

MAX_NAMES = 10
DESCRIPTION_SCAN_LINES = 30
MAX_DESCRIPTION_LENGTH = 200

LANGUAGE_BY_EXTENSION = {
    ".cs": "csharp",
    ".aspx": "aspx",
    ".ascx": "ascx",
}

TYPE_DECLARATION = re.compile(r'\b(?:class|interface|struct|enum|record)\s+([A-Za-z_]\w*)')

MEMBER_DECLARATION = re.compile(
    r'\b(?:public|private|protected|internal)\s+'
    r'(?:(?:static|virtual|override|abstract|sealed|async|new|partial|readonly|extern|unsafe)\s+)*'
    r'[\w<>\[\],.?]+\s+'
    r'([A-Za-z_]\w*)\s*\('
)

# Keywords the declaration patterns can pick up in place of a real identifier
KEYWORD_STOPLIST = frozenset({
    "abstract", "as", "async", "await", "base", "bool", "break", "byte", "case",
    "catch", "char", "checked", "class", "const", "continue", "decimal", "default",
    "delegate", "do", "double", "dynamic", "else", "enum", "event", "explicit",
    "extern", "false", "finally", "fixed", "float", "for", "foreach", "get", "goto",
    "if", "implicit", "in", "int", "interface", "internal", "is", "lock", "long",
    "nameof", "namespace", "new", "null", "object", "operator", "out", "override",
    "params", "partial", "private", "protected", "public", "readonly", "record",
    "ref", "return", "sbyte", "sealed", "set", "short", "sizeof", "static",
    "string", "struct", "switch", "this", "throw", "true", "try", "typeof", "uint",
    "ulong", "unchecked", "unsafe", "ushort", "using", "var", "virtual", "void",
    "volatile", "when", "where", "while", "yield",
})

COMMENT_PREFIXES = ("//", "/*", "*", "<%--", "<!--")
COMMENT_MARKERS = re.compile(r'^(?:<%--|<!--|/\*+|/+|\*+)|(?:\*+/|--%>|-->)$')
XML_DOC_TAG = re.compile(r'</?[A-Za-z][^>]*>')
IMPORT_PREFIXES = ("using", "namespace", "import", "Imports")


def _unique_names(names: Iterable[str], limit: int = MAX_NAMES) -> List[str]:
    result = []
    seen = set()
    for name in names:
        if name in seen or name.lower() in KEYWORD_STOPLIST:
            continue
        seen.add(name)
        result.append(name)
        if len(result) >= limit:
            break
    return result


def extract_type_names(code: str, limit: int = MAX_NAMES) -> List[str]:
    """Names declared with class/interface/struct/enum/record, first-seen order."""
    return _unique_names(TYPE_DECLARATION.findall(code), limit)


def extract_member_names(code: str, limit: int = MAX_NAMES) -> List[str]:
    """Names of access-modified member declarations followed by a parameter list."""
    return _unique_names(MEMBER_DECLARATION.findall(code), limit)


def _comment_text(line: str) -> str:
    text = line.strip()
    # Markers can be stacked, e.g. "/** ... */"
    previous = None
    while text and text != previous:
        previous = text
        text = COMMENT_MARKERS.sub("", text).strip()
    return XML_DOC_TAG.sub("", text).strip()


def extract_description(code: str) -> str:
    """
    Joins the comment text found in the first lines of a file. Falls back to
    the start of the code itself when the file has no leading comments.
    """
    parts = []
    for line in code.splitlines()[:DESCRIPTION_SCAN_LINES]:
        stripped = line.strip()
        if not stripped.startswith(COMMENT_PREFIXES):
            continue
        text = _comment_text(stripped)
        if not text or text.startswith(IMPORT_PREFIXES):
            continue
        parts.append(text)

    description = " ".join(parts)[:MAX_DESCRIPTION_LENGTH]
    return description or code[:MAX_DESCRIPTION_LENGTH]


def language_for(path: str) -> Optional[str]:
    _, extension = os.path.splitext(path)
    return LANGUAGE_BY_EXTENSION.get(extension.lower())


def title_for(path: str) -> str:
    stem, _ = os.path.splitext(os.path.basename(path))
    return re.sub(r'[_-]', ' ', stem)
