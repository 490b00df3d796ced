"""从模型回复中提取 Markdown 代码块，并支持另存为文件。"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union
from uuid import uuid4

from chat_core.domain.exceptions import BusinessError


_FENCE_RE = re.compile(r"```[ \t]*([\w#+.\-]*)[^\n]*\n(.*?)```", re.DOTALL)

LANGUAGE_EXTENSIONS = {
    "csharp": "cs",
    "cs": "cs",
    "c#": "cs",
    "python": "py",
    "py": "py",
    "javascript": "js",
    "js": "js",
    "typescript": "ts",
    "ts": "ts",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "xml": "xml",
    "html": "html",
    "css": "css",
    "shell": "sh",
    "bash": "sh",
    "sh": "sh",
    "c": "c",
    "cpp": "cpp",
    "c++": "cpp",
    "java": "java",
    "go": "go",
    "rust": "rs",
    "lua": "lua",
    "shader": "shader",
    "hlsl": "hlsl",
    "sql": "sql",
    "markdown": "md",
    "md": "md",
}
DEFAULT_EXTENSION = "txt"


@dataclass(frozen=True)
class CodeBlock:
    """一个围栏代码块。

    - language: 围栏上的语言标记（小写，可能为空）。
    - file_extension: 另存为文件时建议的扩展名。
    - content: 代码正文，不含围栏本身。
    """

    language: str
    file_extension: str
    content: str


def extract_code_blocks(text: str) -> List[CodeBlock]:
    blocks: List[CodeBlock] = []
    for match in _FENCE_RE.finditer(text or ""):
        language = match.group(1).lower()
        blocks.append(
            CodeBlock(
                language=language,
                file_extension=LANGUAGE_EXTENSIONS.get(language, DEFAULT_EXTENSION),
                content=match.group(2),
            )
        )
    return blocks


def save_code_block(block: CodeBlock, path: Union[str, Path]) -> Path:
    """把代码块以 UTF-8 写入 path（原子替换），返回解析后的绝对路径。"""

    target = Path(path).expanduser().resolve()
    tmp_path = target.parent / f".{target.name}.{uuid4().hex}.tmp"
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(block.content, encoding="utf-8")
        os.replace(tmp_path, target)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise BusinessError(code="STORE_WRITE_ERROR", message=str(e), path=str(target))
    return target
