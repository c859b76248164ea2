"""
システムクリップボードの読み書きモジュール（xclip）

【使用方法】
from desktop_common.clipboard import Clipboard

clipboard = Clipboard()
data = clipboard.read()          # => b"hello"
clipboard.write(b"hello world")

# PRIMARY セレクションを使う場合
primary = Clipboard(selection="primary")

【処理内容】
1. xclip -out -selection <selection> でクリップボード全体をバイト列として取得
2. xclip -in -selection <selection> に標準入力でバイト列を渡して全体を置き換え
3. 失敗時はリトライせず ClipboardUnavailable を送出

【依存】
desktop_common.external_command, desktop_common.errors
"""

from typing import Optional

from desktop_common.errors import ClipboardUnavailable, SpawnError
from desktop_common.external_command import Runner, run_external


class Clipboard:
    def __init__(self, selection: str = "clipboard", runner: Optional[Runner] = None):
        self._selection = selection
        self._run = runner or run_external

    def read(self) -> bytes:
        try:
            result = self._run("xclip", ["-out", "-selection", self._selection])
        except SpawnError as e:
            raise ClipboardUnavailable(f"クリップボードを取得できません: {e}") from e
        if not result.ok:
            raise ClipboardUnavailable(
                f"クリップボードを取得できません ({result.describe()})"
            )
        return result.stdout

    def write(self, data: bytes) -> None:
        try:
            # xclip -in はフォークして常駐するため出力はキャプチャしない
            result = self._run(
                "xclip", ["-in", "-selection", self._selection], input=data, capture=False
            )
        except SpawnError as e:
            raise ClipboardUnavailable(f"クリップボードに書き込めません: {e}") from e
        if not result.ok:
            raise ClipboardUnavailable(
                f"クリップボードに書き込めません ({result.describe()})"
            )
