"""
キャプチャ → 編集 → 復帰パイプライン: メインオーケストレータ + CLI

【使用方法】
# Python から
from edit_pipeline.config import EditConfig
from edit_pipeline.capture_edit_pipeline import CaptureEditPipeline

config = EditConfig.from_env()
pipeline = CaptureEditPipeline(config)
result = pipeline.run()
# => PipelineResult(window=WindowHandle(...), extension=".md", ...)

# CLI から（ウィンドウマネージャのホットキーに割り当てる想定）
diva-edit
python -m edit_pipeline --profile plain
python -m edit_pipeline --editor "gvim -f" --paste-keys "ctrl+v" -v

【処理内容】
1. Identify: アクティブウィンドウのID・PID・実行ファイル名・タイトルを取得
2. SimulateCopy: ctrl+a, ctrl+c を送信してテキストをクリップボードへ
3. ReadClipboard: クリップボードを読む（失敗時は空バッファで続行）
4. Classify: 実行ファイル名・タイトルから拡張子を推定
5. Edit: 一時ファイル上でエディタを実行（失敗時もウィンドウ復帰を試みてから終了）
6. WriteClipboard: 編集結果をクリップボードへ書き戻す
7. Restore: 元のウィンドウを同期的にアクティブ化し、必要なら貼り付けキーを送信

どの段階の失敗も1行のエラーログを出して終了コード1で終了する。
同時実行は想定していない（クリップボード・キーリピート・フォーカスはグローバル状態）。

【依存】
edit_pipeline 全モジュール, desktop_common, argparse, logging
"""

import argparse
import logging
import shlex
from typing import Optional, Sequence

from desktop_common.clipboard import Clipboard
from desktop_common.errors import (
    ActivationFailed,
    ClipboardUnavailable,
    DivaEditError,
    EditError,
)
from desktop_common.window_control import WindowControl
from edit_pipeline.config import PROFILES, EditConfig
from edit_pipeline.editor_session import EditorSession
from edit_pipeline.extension_classifier import DEFAULT_RULES, classify
from edit_pipeline.models import ExtensionRule, PipelineResult, WindowHandle

logger = logging.getLogger(__name__)


class CaptureEditPipeline:
    def __init__(
        self,
        config: EditConfig,
        window_control: Optional[WindowControl] = None,
        clipboard: Optional[Clipboard] = None,
        editor_session: Optional[EditorSession] = None,
        rules: Sequence[ExtensionRule] = DEFAULT_RULES,
    ):
        self._config = config
        self._window_control = window_control or WindowControl()
        self._clipboard = clipboard or Clipboard(selection=config.selection)
        self._editor_session = editor_session or EditorSession(
            config.editor_command,
            temp_prefix=config.temp_prefix,
            timeout=config.editor_timeout,
        )
        self._rules = rules

    def run(self) -> PipelineResult:
        window = self.identify()
        self._window_control.simulate_copy(
            window.window_id,
            keys=self._config.copy_keys,
            inter_key_delay=self._config.key_delay,
        )

        initial = self._read_clipboard()
        extension = self._classify(window)

        try:
            edited = self._editor_session.edit(initial, extension)
        except EditError as e:
            self._restore_after_failure(window, e)
            raise

        self._clipboard.write(edited)
        logger.info("編集完了: %dバイト → %dバイト", len(initial), len(edited))

        pasted = self._restore(window)
        return PipelineResult(
            window=window,
            extension=extension,
            initial_size=len(initial),
            final_size=len(edited),
            pasted=pasted,
        )

    def identify(self) -> WindowHandle:
        wc = self._window_control
        window_id = wc.current_window()
        pid, executable = wc.resolve_process(window_id)
        title = wc.title(window_id)
        logger.info("ウィンドウ: %s, コマンド: %s, タイトル: %r", window_id, executable, title)
        return WindowHandle(window_id=window_id, pid=pid, title=title, executable=executable)

    def _read_clipboard(self) -> bytes:
        try:
            return self._clipboard.read()
        except ClipboardUnavailable as e:
            logger.warning("クリップボードを取得できないため空のバッファを使います: %s", e)
            return b""

    def _classify(self, window: WindowHandle) -> str:
        if not self._config.extension_hints:
            return ""
        extension = classify(window.executable, window.title, self._rules)
        logger.debug("拡張子: %s", extension)
        return extension

    def _restore(self, window: WindowHandle) -> bool:
        self._window_control.activate(window.window_id)
        if not self._config.paste_keys:
            return False
        # 失敗してもクリップボードには編集結果が残っている（手動で貼り付け可能）
        self._window_control.simulate_keys(
            window.window_id, self._config.paste_keys, self._config.key_delay
        )
        return True

    def _restore_after_failure(self, window: WindowHandle, error: EditError) -> None:
        logger.info("編集に失敗したため、ウィンドウ %s に戻ります", window.window_id)
        try:
            self._window_control.activate(window.window_id)
        except ActivationFailed as restore_error:
            logger.error("クリップボードの編集に失敗: %s", error)
            raise restore_error from error


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diva-edit",
        description="アクティブウィンドウのテキストを外部エディタで編集して戻す",
    )
    parser.add_argument("--profile", choices=sorted(PROFILES), help="設定プロファイル")
    parser.add_argument("--editor", type=str, help='エディタコマンド (例: "gvim -f")')
    parser.add_argument("--paste-keys", type=str, help='復帰後に送るキー (例: "ctrl+v")')
    parser.add_argument("--no-paste", action="store_true", help="復帰後に貼り付けない")
    parser.add_argument("--key-delay", type=float, help="キー送信間隔（秒）")
    parser.add_argument(
        "--no-extension-hints", action="store_true", help="拡張子推定を無効化"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="デバッグログを出力")
    return parser


def apply_args(config: EditConfig, args: argparse.Namespace) -> EditConfig:
    if args.editor:
        config.editor_command = shlex.split(args.editor)
    if args.paste_keys is not None:
        config.paste_keys = args.paste_keys.split()
    if args.no_paste:
        config.paste_keys = []
    if args.key_delay is not None:
        if args.key_delay < 0:
            raise ValueError(f"--key-delay は0以上で指定してください: {args.key_delay}")
        config.key_delay = args.key_delay
    if args.no_extension_hints:
        config.extension_hints = False
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        config = apply_args(EditConfig.from_env(profile=args.profile), args)
        if not args.verbose:
            logging.getLogger().setLevel(config.log_level)
    except ValueError as e:
        logger.error("設定エラー: %s", e)
        return 1

    pipeline = CaptureEditPipeline(config)
    try:
        pipeline.run()
    except DivaEditError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.error("中断されました")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
