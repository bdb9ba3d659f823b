from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

# Identical for every instruction language.
SCHEMA_CONTRACT = (
    "[\n"
    "  {\n"
    '    "title": "task title",\n'
    '    "description": "task description",\n'
    '    "dueDate": "ISO-8601 date time or null",\n'
    '    "reminderTime": "ISO-8601 date time or null",\n'
    '    "priority": "LOW|MEDIUM|HIGH|URGENT",\n'
    '    "category": "category name",\n'
    '    "tags": ["tag1", "tag2"]\n'
    "  }\n"
    "]"
)

_INSTRUCTIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "intro": (
            "Extract tasks, time information, people and categories from the "
            "following text. Return the result as a JSON array where each item "
            "is a task with the following structure:"
        ),
        "rules": (
            "Return ONLY the JSON array, with no explanation and no markdown. "
            "Use null for unknown dates. Do not invent tasks that are not in the text."
        ),
        "now": "Current time:",
        "text": "Text:",
    },
    "zh": {
        "intro": (
            "请从以下文本中提取任务、时间信息、相关人物和类别。"
            "以 JSON 数组返回结果，数组中每一项是一个任务，结构如下："
        ),
        "rules": (
            "只返回 JSON 数组，不要有其他文字或 markdown。"
            "无法确定的日期设置为 null。不要添加文本中没有提到的任务。"
        ),
        "now": "当前时间：",
        "text": "文本：",
    },
}

DEFAULT_LANGUAGE = "en"


class PromptBuilder:
    """Renders raw user text into an extraction prompt."""

    def build(
        self,
        text: str,
        *,
        language: str = DEFAULT_LANGUAGE,
        reference_time: Optional[datetime] = None,
    ) -> str:
        lang = (language or DEFAULT_LANGUAGE).strip().lower().split("-")[0]
        parts = _INSTRUCTIONS.get(lang, _INSTRUCTIONS[DEFAULT_LANGUAGE])

        lines = [parts["intro"], SCHEMA_CONTRACT, "", parts["rules"]]
        if reference_time is not None:
            lines.append(f"{parts['now']} {reference_time.isoformat()}")
        lines += ["", f"{parts['text']} {text}"]
        return "\n".join(lines)
