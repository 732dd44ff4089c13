"""Code block language table.

The platform stores a code block's language as a small integer.  This
module maps those integers to Markdown fence tags and back.
"""

from __future__ import annotations

# Platform code -> fence tag.  Code 1 is "plain text" and has no tag.
_CODE_TO_NAME: dict[int, str] = {
    1: "",
    2: "abap",
    3: "ada",
    4: "apache",
    5: "apex",
    6: "assembly",
    7: "bash",
    8: "csharp",
    9: "cpp",
    10: "c",
    11: "cobol",
    12: "css",
    13: "coffeescript",
    14: "d",
    15: "dart",
    16: "delphi",
    17: "django",
    18: "dockerfile",
    19: "erlang",
    20: "fortran",
    21: "foxpro",
    22: "go",
    23: "groovy",
    24: "html",
    25: "htmlbars",
    26: "http",
    27: "haskell",
    28: "json",
    29: "java",
    30: "javascript",
    31: "julia",
    32: "kotlin",
    33: "latex",
    34: "lisp",
    35: "logo",
    36: "lua",
    37: "matlab",
    38: "makefile",
    39: "markdown",
    40: "nginx",
    41: "objectivec",
    42: "openedgeabl",
    43: "php",
    44: "perl",
    45: "postscript",
    46: "powershell",
    47: "prolog",
    48: "protobuf",
    49: "python",
    50: "r",
    51: "rpg",
    52: "ruby",
    53: "rust",
    54: "sas",
    55: "scss",
    56: "sql",
    57: "scala",
    58: "scheme",
    59: "scratch",
    60: "shell",
    61: "swift",
    62: "thrift",
    63: "typescript",
    64: "vbscript",
    65: "vb",
    66: "xml",
    67: "yaml",
    68: "cmake",
    69: "diff",
    70: "gherkin",
    71: "graphql",
    72: "glsl",
    73: "properties",
    74: "solidity",
    75: "toml",
}

_ALIASES: dict[str, str] = {
    "text": "",
    "txt": "",
    "plain": "",
    "plaintext": "",
    "plain text": "",
    "py": "python",
    "python3": "python",
    "js": "javascript",
    "jsx": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "sh": "shell",
    "zsh": "shell",
    "console": "shell",
    "c++": "cpp",
    "cc": "cpp",
    "hpp": "cpp",
    "c#": "csharp",
    "cs": "csharp",
    "yml": "yaml",
    "md": "markdown",
    "golang": "go",
    "rb": "ruby",
    "rs": "rust",
    "tex": "latex",
    "htm": "html",
    "kt": "kotlin",
    "pl": "perl",
    "ps1": "powershell",
    "objc": "objectivec",
    "objective-c": "objectivec",
    "docker": "dockerfile",
    "make": "makefile",
    "proto": "protobuf",
    "visual basic": "vb",
    "vb.net": "vb",
    "patch": "diff",
}

_NAME_TO_CODE: dict[str, int] = {name: code for code, name in _CODE_TO_NAME.items()}


def language_name(language: int | str | None) -> str:
    """Return the fence tag for a stored language.

    Integers are looked up in the platform table (unknown codes give
    ``""``); strings are returned stripped, except ``"plain text"`` and
    friends which give ``""``.
    """
    if language is None or isinstance(language, bool):
        return ""
    if isinstance(language, int):
        return _CODE_TO_NAME.get(language, "")
    tag = str(language).strip()
    if _ALIASES.get(tag.lower()) == "":
        return ""
    return tag


def language_code(tag: str) -> int | None:
    """Return the platform code for a fence tag, or ``None`` if unknown."""
    key = tag.strip().lower()
    if not key:
        return None
    key = _ALIASES.get(key, key)
    return _NAME_TO_CODE.get(key)
