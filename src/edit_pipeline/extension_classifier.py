"""
ウィンドウの実行ファイル名とタイトルから一時ファイルの拡張子を決めるモジュール

【使用方法】
from edit_pipeline.extension_classifier import classify, rules_from_dicts

classify("chromium-browser", "Inbox")   # => ".md"
classify("xterm", "bash")               # => ".txt"

rules = rules_from_dicts([{"title": "- Jira", "ext": ".jira"}])
classify("firefox", "ABC-1 - Jira", rules)  # => ".jira"

【処理内容】
ルールを上から順に評価し、全ての条件（部分一致）を満たした最初のルールの拡張子を返す。
どのルールにも一致しない場合は DEFAULT_EXTENSION を返す。
拡張子はエディタのシンタックスモード選択にだけ使われる。

【依存】
edit_pipeline.models
"""

from typing import Dict, Iterable, List, Sequence

from edit_pipeline.models import ExtensionRule

DEFAULT_EXTENSION = ".txt"

DEFAULT_RULES: Sequence[ExtensionRule] = (
    ExtensionRule(cmd="chromium", ext=".md"),
    ExtensionRule(cmd="firefox", ext=".md"),
)


def classify(
    executable: str, title: str, rules: Iterable[ExtensionRule] = DEFAULT_RULES
) -> str:
    for rule in rules:
        if rule.matches(executable, title):
            return rule.ext
    return DEFAULT_EXTENSION


def rules_from_dicts(entries: Iterable[Dict[str, str]]) -> List[ExtensionRule]:
    """{"cmd", "title", "ext"} 形式の辞書リストからルールを作る（順序は維持）"""
    return [
        ExtensionRule(
            ext=entry["ext"],
            cmd=entry.get("cmd") or "",
            title=entry.get("title") or "",
        )
        for entry in entries
    ]
