"""
アクティブウィンドウの特定・復帰・キー送信を行うモジュール

【使用方法】
from desktop_common.window_control import WindowControl

wc = WindowControl()

window_id = wc.current_window()           # => "123"
pid, executable = wc.resolve_process(window_id)  # => (4567, "firefox")
title = wc.title(window_id)               # => "Draft"

# 全選択 + コピー
wc.simulate_copy(window_id)

# ウィンドウに戻って貼り付け
wc.activate(window_id)
wc.simulate_keys(window_id, ["ctrl+v"], inter_key_delay=0.05)

【処理内容】
1. xdotool getactivewindow / getwindowpid / getwindowname でウィンドウ情報を取得
2. psutil で PID から実行ファイル名を解決
3. キー送信中は xset r off でキーリピートを無効化し、失敗時も必ず xset r on で戻す
4. xdotool key --clearmodifiers --window でキーを1つずつ送信
5. xdotool windowactivate --sync で切り替え完了まで待ってから戻る

【必要環境】
- Linux + X11ディスプレイサーバー
- xdotool, xset コマンド
- DISPLAY環境変数が設定されていること

【依存】
psutil, desktop_common.external_command, desktop_common.errors
"""

import logging
import time
from typing import Optional, Sequence, Tuple

import psutil

from desktop_common.errors import (
    ActivationFailed,
    InputInjectionFailed,
    NoActiveWindow,
    ProcessLookupFailed,
    SpawnError,
    TitleLookupFailed,
)
from desktop_common.external_command import Runner, run_external

logger = logging.getLogger(__name__)

DEFAULT_COPY_KEYS: Tuple[str, ...] = ("ctrl+a", "ctrl+c")


class WindowControl:
    """xdotool / xset を使ったウィンドウ操作アダプタ"""

    def __init__(self, runner: Optional[Runner] = None, process_lookup=None):
        self._run = runner or run_external
        # PID -> psutil.Process 互換オブジェクト（テストで差し替え可能）
        self._process_lookup = process_lookup or psutil.Process

    def _xdotool(self, args: Sequence[str], error_cls, what: str) -> str:
        try:
            result = self._run("xdotool", list(args))
        except SpawnError as e:
            raise error_cls(f"{what}: {e}") from e
        if not result.ok:
            raise error_cls(f"{what}: xdotool {' '.join(args)} 失敗 ({result.describe()})")
        return result.text()

    def current_window(self) -> str:
        """入力フォーカスを持つウィンドウのIDを返す"""
        window_id = self._xdotool(
            ["getactivewindow"], NoActiveWindow, "アクティブウィンドウが見つかりません"
        )
        if not window_id:
            raise NoActiveWindow("アクティブウィンドウが見つかりません")
        return window_id

    def resolve_process(self, window_id: str) -> Tuple[int, str]:
        """
        ウィンドウを所有するプロセスのPIDと実行ファイル名を返す

        Input:
            window_id: ウィンドウID
        Output:
            Tuple[int, str]: (pid, 実行ファイル名)
        """
        what = f"ウィンドウ {window_id} のPIDが見つかりません"
        output = self._xdotool(["getwindowpid", window_id], ProcessLookupFailed, what)
        try:
            pid = int(output)
        except ValueError as e:
            raise ProcessLookupFailed(f"{what}: PIDの解析に失敗 ({output!r})") from e

        try:
            executable = self._process_lookup(pid).name()
        except psutil.Error as e:
            raise ProcessLookupFailed(f"PID {pid} のプロセスが見つかりません: {e}") from e
        return pid, executable

    def title(self, window_id: str) -> str:
        """ウィンドウタイトルを返す"""
        return self._xdotool(
            ["getwindowname", window_id],
            TitleLookupFailed,
            f"ウィンドウ {window_id} のタイトルが見つかりません",
        )

    def simulate_copy(
        self,
        window_id: str,
        keys: Sequence[str] = DEFAULT_COPY_KEYS,
        inter_key_delay: float = 0.0,
    ) -> None:
        """全選択 + コピーを送信して、ウィンドウのテキストをクリップボードに入れる"""
        self.simulate_keys(window_id, keys, inter_key_delay)

    def activate(self, window_id: str) -> None:
        """ウィンドウを前面に出し、切り替えが完了するまで待つ"""
        args = ["windowactivate", "--sync", window_id]
        logger.info("xdotool %s を実行", " ".join(args))
        try:
            result = self._run("xdotool", args)
        except SpawnError as e:
            raise ActivationFailed(f"ウィンドウ {window_id} への切り替えに失敗: {e}") from e
        if not result.ok:
            raise ActivationFailed(
                f"ウィンドウ {window_id} への切り替えに失敗 ({result.describe()})"
            )

    def simulate_keys(
        self, window_id: str, keys: Sequence[str], inter_key_delay: float = 0.0
    ) -> None:
        """
        キー列をウィンドウに1つずつ送信する

        Input:
            window_id: 送信先ウィンドウID
            keys: xdotool のキー名リスト (例: ["ctrl+a", "ctrl+c"])
            inter_key_delay: 各キーの後に待つ秒数
        """
        self._set_key_repeat(False)
        completed = False
        try:
            for key in keys:
                args = ["key", "--clearmodifiers", "--window", window_id, key]
                logger.info("xdotool %s を実行", " ".join(args))
                try:
                    result = self._run("xdotool", args)
                except SpawnError as e:
                    raise InputInjectionFailed(f"キー {key} の送信に失敗: {e}") from e
                if not result.ok:
                    raise InputInjectionFailed(
                        f"キー {key} の送信に失敗 ({result.describe()})"
                    )
                if inter_key_delay > 0:
                    time.sleep(inter_key_delay)
            completed = True
        finally:
            try:
                self._set_key_repeat(True)
            except InputInjectionFailed as restore_error:
                if completed:
                    raise
                # 送信中のエラーを優先し、キーリピート復帰の失敗はログのみ
                logger.warning("キーリピートの再有効化に失敗: %s", restore_error)

    def _set_key_repeat(self, enabled: bool) -> None:
        state = "on" if enabled else "off"
        try:
            result = self._run("xset", ["r", state])
        except SpawnError as e:
            raise InputInjectionFailed(f"xset r {state} に失敗: {e}") from e
        if not result.ok:
            raise InputInjectionFailed(f"xset r {state} に失敗 ({result.describe()})")
