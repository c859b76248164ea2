"""
編集パイプラインで共有するデータモデル定義

【使用方法】
from edit_pipeline.models import WindowHandle, ExtensionRule, PipelineResult

window = WindowHandle(window_id="123", pid=4567, title="Draft", executable="firefox")

rule = ExtensionRule(ext=".md", cmd="firefox")
rule.matches("firefox", "Draft")  # => True

【処理内容】
WindowHandle: 1回の実行中だけ有効なウィンドウ識別情報
ExtensionRule: 実行ファイル名・タイトルの部分一致で拡張子を決めるルール
PipelineResult: 成功した実行の要約

【依存】
Python標準ライブラリのみ (dataclasses)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class WindowHandle:
    window_id: str
    pid: int
    title: str
    executable: str


@dataclass(frozen=True)
class ExtensionRule:
    ext: str
    cmd: str = ""
    title: str = ""

    def matches(self, executable: str, title: str) -> bool:
        # 空の条件は制約なし（大文字小文字は区別する）
        if self.cmd and self.cmd not in executable:
            return False
        if self.title and self.title not in title:
            return False
        return True


@dataclass
class PipelineResult:
    window: WindowHandle
    extension: str
    initial_size: int
    final_size: int
    pasted: bool = False
