"""
一時ファイル上で外部エディタを起動し、編集結果を返すモジュール

【使用方法】
from edit_pipeline.editor_session import EditorSession

session = EditorSession(["gvim", "-f", "-c", ":Goyo", "-c", ":PencilSoft"])
edited = session.edit(b"hello", ".md")
# => b"hello world"（エディタで保存した内容）

【処理内容】
1. tempfile.mkdtemp で一意な一時ディレクトリ（diva-edit-XXXX）を作成
2. text<拡張子> ファイルに初期バイト列を書き込み（パーミッション 0600）
3. エディタをフォアグラウンドで同期実行（終了するまでブロック）
4. エディタ終了後にファイルを読み戻す
5. 成功・失敗に関わらずファイル → ディレクトリの順に削除
   削除失敗は警告ログのみで、読み戻し済みの結果は捨てない

【依存】
Python標準ライブラリ (tempfile, shutil, contextlib, pathlib),
desktop_common.external_command, desktop_common.errors
"""

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Sequence

from desktop_common.errors import EditorLaunchFailed, SpawnError, TempIOFailed
from desktop_common.external_command import Runner, run_external

logger = logging.getLogger(__name__)


class EditorSession:
    def __init__(
        self,
        editor_command: Sequence[str],
        temp_prefix: str = "diva-edit-",
        timeout: Optional[float] = None,
        runner: Optional[Runner] = None,
    ):
        self._editor_command = list(editor_command)
        self._temp_prefix = temp_prefix
        self._timeout = timeout
        self._run = runner or run_external

    def edit(self, initial: bytes, extension: str) -> bytes:
        """
        初期内容をエディタで編集し、保存された内容を返す

        Input:
            initial: 編集前のバイト列
            extension: 一時ファイルの拡張子（"" なら拡張子なし）
        Output:
            bytes: エディタ終了時のファイル内容
        """
        if not self._editor_command:
            raise EditorLaunchFailed("エディタコマンドが設定されていません")

        with self._scoped_edit_file(extension) as path:
            self._write(path, initial)
            self._launch_editor(path)
            return self._read(path)

    @contextmanager
    def _scoped_edit_file(self, extension: str) -> Iterator[Path]:
        try:
            directory = Path(tempfile.mkdtemp(prefix=self._temp_prefix))
        except OSError as e:
            raise TempIOFailed(f"一時ディレクトリを作成できません: {e}") from e

        path = directory / f"text{extension}"
        try:
            yield path
        finally:
            self._cleanup(path, directory)

    def _write(self, path: Path, data: bytes) -> None:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError as e:
            raise TempIOFailed(f"一時ファイル {path} に書き込めません: {e}") from e

    def _launch_editor(self, path: Path) -> None:
        name, *args = self._editor_command
        logger.info("エディタ起動: %s %s", " ".join(self._editor_command), path)
        try:
            result = self._run(name, [*args, str(path)], capture=False, timeout=self._timeout)
        except SpawnError as e:
            raise EditorLaunchFailed(f"エディタ {name} の実行に失敗: {e}") from e
        if not result.ok:
            raise EditorLaunchFailed(
                f"エディタ {name} が異常終了しました ({result.describe()})"
            )

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise TempIOFailed(f"一時ファイル {path} を読み込めません: {e}") from e

    def _cleanup(self, path: Path, directory: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("一時ファイル削除失敗 %s: %s", path, e)
        # エディタのスワップファイル等が残っていてもディレクトリごと消す
        try:
            shutil.rmtree(directory)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("一時ディレクトリ削除失敗 %s: %s", directory, e)
