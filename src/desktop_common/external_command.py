"""
外部コマンド実行モジュール

【使用方法】
from desktop_common.external_command import run_external

result = run_external("xdotool", ["getactivewindow"])
if result.returncode == 0:
    window_id = result.text()

# 標準入力にバイト列を渡す
run_external("xclip", ["-in", "-selection", "clipboard"], input=b"hello")

# 端末をそのまま引き継ぐ（エディタ起動用）
run_external("gvim", ["-f", "/tmp/text.md"], capture=False)

【処理内容】
1. subprocess.run でコマンドを同期実行
2. 起動失敗（コマンド未インストール、権限不足など）は SpawnError を送出
3. タイムアウトは CommandTimeout を送出（子プロセスは subprocess.run が kill する）
4. 終了コードは CommandResult に格納して返す（非0でも例外にしない）

【依存】
Python標準ライブラリ (subprocess, logging), desktop_common.errors
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from desktop_common.errors import CommandTimeout, SpawnError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def text(self) -> str:
        """標準出力を前後の空白を除いた文字列で返す"""
        return self.stdout.decode("utf-8", errors="replace").strip()

    def describe(self) -> str:
        """エラーメッセージ用の要約"""
        err = self.stderr.decode("utf-8", errors="replace").strip()
        if err:
            return f"returncode={self.returncode}, stderr: {err}"
        return f"returncode={self.returncode}"


# アダプタに差し込むコマンド実行関数の型（テストではフェイクに置き換える）
Runner = Callable[..., CommandResult]


def run_external(
    name: str,
    args: Sequence[str],
    input: Optional[bytes] = None,
    capture: bool = True,
    timeout: Optional[float] = None,
) -> CommandResult:
    """
    外部コマンドを実行して結果を返す

    Input:
        name: 実行ファイル名
        args: 引数リスト
        input: 標準入力に渡すバイト列
        capture: False の場合、標準入出力を親プロセスから引き継ぐ
        timeout: 秒数（None なら無制限に待つ）
    Output:
        CommandResult: 終了コードと出力
    """
    cmd = [name, *args]
    logger.debug("実行: %s", " ".join(cmd))

    try:
        if capture:
            completed = subprocess.run(
                cmd, input=input, capture_output=True, timeout=timeout
            )
        else:
            completed = subprocess.run(cmd, input=input, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise CommandTimeout(f"{name} が {timeout}秒以内に終了しませんでした") from e
    except OSError as e:
        raise SpawnError(f"{name} を起動できません: {e}") from e

    return CommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout or b"",
        stderr=completed.stderr or b"",
    )
