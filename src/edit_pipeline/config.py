"""
編集パイプライン設定管理モジュール

【使用方法】
from edit_pipeline.config import EditConfig

# .env + 環境変数からロード
config = EditConfig.from_env()

# プロファイルを指定
config = EditConfig.from_env(profile="plain")

# デフォルト値（prose プロファイル）で生成
config = EditConfig()

【処理内容】
1. python-dotenv で .env ファイルを読み込み
2. プロファイル（prose / plain）の既定値を決める
3. DIVA_EDIT_* 環境変数で個別に上書きする
4. EditConfig dataclass としてアクセス可能にする

【プロファイル】
prose: gvim -f -c :Goyo -c :PencilSoft、拡張子推定あり、貼り付けなし
plain: gvim -f、拡張子推定なし、復帰後に ctrl+v で貼り付け

【環境変数】
DIVA_EDIT_PROFILE, DIVA_EDIT_EDITOR, DIVA_EDIT_EXTENSION_HINTS,
DIVA_EDIT_COPY_KEYS, DIVA_EDIT_PASTE_KEYS, DIVA_EDIT_KEY_DELAY,
DIVA_EDIT_EDITOR_TIMEOUT, DIVA_EDIT_SELECTION, DIVA_EDIT_LOG_LEVEL

【依存】
python-dotenv, shlex, pathlib
"""

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

PROFILES: Dict[str, Dict] = {
    "prose": {
        "editor_command": ["gvim", "-f", "-c", ":Goyo", "-c", ":PencilSoft"],
        "extension_hints": True,
        "paste_keys": [],
    },
    "plain": {
        "editor_command": ["gvim", "-f"],
        "extension_hints": False,
        "paste_keys": ["ctrl+v"],
    },
}
DEFAULT_PROFILE = "prose"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class EditConfig:
    profile: str = DEFAULT_PROFILE
    editor_command: List[str] = field(
        default_factory=lambda: list(PROFILES[DEFAULT_PROFILE]["editor_command"])
    )
    extension_hints: bool = True
    copy_keys: List[str] = field(default_factory=lambda: ["ctrl+a", "ctrl+c"])
    paste_keys: List[str] = field(default_factory=list)
    key_delay: float = 0.0
    editor_timeout: Optional[float] = None
    temp_prefix: str = "diva-edit-"
    selection: str = "clipboard"
    log_level: str = "INFO"

    @classmethod
    def for_profile(cls, profile: str) -> "EditConfig":
        if profile not in PROFILES:
            raise ValueError(
                f"不明なプロファイル: {profile} (選択肢: {', '.join(sorted(PROFILES))})"
            )
        defaults = PROFILES[profile]
        return cls(
            profile=profile,
            editor_command=list(defaults["editor_command"]),
            extension_hints=defaults["extension_hints"],
            paste_keys=list(defaults["paste_keys"]),
        )

    @classmethod
    def from_env(cls, profile: Optional[str] = None) -> "EditConfig":
        # プロジェクトルートの .env を明示的に探す
        src_dir = Path(__file__).resolve().parent.parent
        for candidate in [src_dir / ".env", src_dir.parent / ".env"]:
            if candidate.exists():
                load_dotenv(candidate)
                break
        else:
            load_dotenv()

        config = cls.for_profile(profile or os.getenv("DIVA_EDIT_PROFILE") or DEFAULT_PROFILE)

        editor = os.getenv("DIVA_EDIT_EDITOR")
        if editor:
            config.editor_command = shlex.split(editor)
        hints = os.getenv("DIVA_EDIT_EXTENSION_HINTS")
        if hints:
            config.extension_hints = _parse_bool("DIVA_EDIT_EXTENSION_HINTS", hints)
        copy_keys = os.getenv("DIVA_EDIT_COPY_KEYS")
        if copy_keys:
            config.copy_keys = copy_keys.split()
        # 空文字列は「貼り付けなし」を意味するので None と区別する
        paste_keys = os.getenv("DIVA_EDIT_PASTE_KEYS")
        if paste_keys is not None:
            config.paste_keys = paste_keys.split()
        config.key_delay = _parse_float("DIVA_EDIT_KEY_DELAY", os.getenv("DIVA_EDIT_KEY_DELAY", "0.0"))
        timeout = os.getenv("DIVA_EDIT_EDITOR_TIMEOUT", "")
        config.editor_timeout = _parse_float("DIVA_EDIT_EDITOR_TIMEOUT", timeout) if timeout else None
        config.selection = os.getenv("DIVA_EDIT_SELECTION", "clipboard")
        config.log_level = os.getenv("DIVA_EDIT_LOG_LEVEL", "INFO").upper()
        return config


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} の値が不正です: {raw!r}")


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} の値が不正です: {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name} は0以上で指定してください: {raw!r}")
    return value
