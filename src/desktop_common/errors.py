"""
diva-edit 全体で共有する例外クラス定義

【使用方法】
from desktop_common.errors import DivaEditError, ActivationFailed

try:
    window_control.activate("123")
except ActivationFailed as e:
    print(f"復帰失敗: {e}")

【処理内容】
DivaEditError を基底とし、パイプラインの各段階の失敗種別を表す。
- SpawnError / CommandTimeout: 外部コマンドの起動失敗・タイムアウト
- NoActiveWindow, ProcessLookupFailed, TitleLookupFailed: ウィンドウ特定の失敗
- InputInjectionFailed, ActivationFailed: キー送信・ウィンドウ復帰の失敗
- ClipboardUnavailable: クリップボード読み書きの失敗
- EditError (EditorLaunchFailed, TempIOFailed): エディタセッションの失敗

【依存】
Python標準ライブラリのみ
"""


class DivaEditError(RuntimeError):
    """diva-edit の全エラーの基底クラス"""


class SpawnError(DivaEditError):
    """外部コマンドを起動できなかった"""


class CommandTimeout(SpawnError):
    """外部コマンドがタイムアウトした"""


class NoActiveWindow(DivaEditError):
    pass


class ProcessLookupFailed(DivaEditError):
    pass


class TitleLookupFailed(DivaEditError):
    pass


class InputInjectionFailed(DivaEditError):
    pass


class ActivationFailed(DivaEditError):
    pass


class ClipboardUnavailable(DivaEditError):
    pass


class EditError(DivaEditError):
    """エディタセッション中の失敗（オーケストレータはウィンドウ復帰を試みる）"""


class EditorLaunchFailed(EditError):
    pass


class TempIOFailed(EditError):
    pass
