"""Settings 配置文件加载

从 ~/.mention_input/settings.json（user级）和 {project_root}/.mention_input/settings.json
（project级）加载输入框配置，支持分层覆盖。

优先级（从高到低）：
    环境变量 > project/.mention_input/settings.json > ~/.mention_input/settings.json > 默认值
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from mention_input.env_utils import read_env_bool, read_env_int

logger = logging.getLogger(__name__)

SettingSource = Literal["user", "project"]
DEFAULT_SETTING_SOURCES: tuple[SettingSource, ...] = ("user", "project")

SETTINGS_DIR_NAME = ".mention_input"
USER_SETTINGS_PATH: Path = Path.home() / SETTINGS_DIR_NAME / "settings.json"

DEFAULT_MENU_MAX_HEIGHT = 8

ENV_MENU_HEIGHT = "MENTION_INPUT_MENU_HEIGHT"
ENV_SHOW_DEBUG = "MENTION_INPUT_SHOW_DEBUG"


@dataclass
class SettingsConfig:
    """单个 settings.json 中出现的字段，未出现的字段为 None

    Attributes:
        users_file: 用户目录文件（JSON/YAML），相对路径按 settings.json 所在目录解析
        menu_max_height: 候选菜单最多显示行数
        show_debug: 是否显示调试面板
        mouse_support: 是否允许鼠标点击候选项
    """

    users_file: Path | None = None
    menu_max_height: int | None = None
    show_debug: bool | None = None
    mouse_support: bool | None = None


@dataclass(frozen=True)
class MentionSettings:
    """合并默认值、配置文件和环境变量之后的最终配置"""

    users_file: Path | None = None
    menu_max_height: int = DEFAULT_MENU_MAX_HEIGHT
    show_debug: bool = True
    mouse_support: bool = True


def load_settings_file(path: Path) -> SettingsConfig | None:
    """从 settings.json 文件加载配置

    文件不存在或解析失败时返回 None，不抛异常。
    """
    resolved = path.expanduser()
    if not resolved.exists():
        logger.debug(f"settings.json not found, skipped: {resolved}")
        return None

    if not resolved.is_file():
        logger.warning(f"settings.json path is not a file: {resolved}")
        return None

    try:
        data = json.loads(resolved.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to read settings.json {resolved}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"settings.json is not a JSON object: {resolved}")
        return None

    config = SettingsConfig()

    raw_users_file = data.get("users_file")
    if raw_users_file is not None:
        if not isinstance(raw_users_file, str) or not raw_users_file.strip():
            logger.warning(f"settings.json users_file is not a non-empty string, skipped: {resolved}")
        else:
            users_file = Path(raw_users_file.strip()).expanduser()
            if not users_file.is_absolute():
                users_file = resolved.parent / users_file
            config.users_file = users_file

    raw_height = data.get("menu_max_height")
    if raw_height is not None:
        # bool 是 int 的子类，需要单独排除
        if isinstance(raw_height, bool) or not isinstance(raw_height, int) or raw_height <= 0:
            logger.warning(f"settings.json menu_max_height must be a positive integer, skipped: {resolved}")
        else:
            config.menu_max_height = raw_height

    for key in ("show_debug", "mouse_support"):
        raw_flag = data.get(key)
        if raw_flag is None:
            continue
        if not isinstance(raw_flag, bool):
            logger.warning(f"settings.json {key} is not a boolean, skipped: {resolved}")
            continue
        setattr(config, key, raw_flag)

    if config == SettingsConfig():
        return None
    return config


def _merge(base: SettingsConfig | None, override: SettingsConfig | None) -> SettingsConfig:
    base = base or SettingsConfig()
    if override is None:
        return base
    return SettingsConfig(
        users_file=override.users_file if override.users_file is not None else base.users_file,
        menu_max_height=override.menu_max_height if override.menu_max_height is not None else base.menu_max_height,
        show_debug=override.show_debug if override.show_debug is not None else base.show_debug,
        mouse_support=override.mouse_support if override.mouse_support is not None else base.mouse_support,
    )


def resolve_settings(
    sources: tuple[SettingSource, ...] | None = DEFAULT_SETTING_SOURCES,
    project_root: Path | None = None,
    *,
    user_settings_path: Path | None = None,
) -> MentionSettings:
    """按优先级加载并合并 settings

    合并策略：project 中出现的字段覆盖 user 的同名字段，环境变量最后覆盖。

    Args:
        sources: 要加载的配置源，None 或空 tuple 表示只使用默认值和环境变量
        project_root: 项目根目录，None 时使用 cwd
        user_settings_path: user 级 settings.json 路径，None 时使用 USER_SETTINGS_PATH
    """
    merged = SettingsConfig()
    if sources:
        root = (project_root or Path.cwd()).expanduser()
        if "user" in sources:
            merged = _merge(merged, load_settings_file(user_settings_path or USER_SETTINGS_PATH))
        if "project" in sources:
            merged = _merge(merged, load_settings_file(root / SETTINGS_DIR_NAME / "settings.json"))
    else:
        logger.debug("setting_sources is empty, using defaults")

    menu_max_height = merged.menu_max_height or DEFAULT_MENU_MAX_HEIGHT
    show_debug = merged.show_debug if merged.show_debug is not None else True

    settings = MentionSettings(
        users_file=merged.users_file,
        menu_max_height=read_env_int(ENV_MENU_HEIGHT, menu_max_height),
        show_debug=read_env_bool(ENV_SHOW_DEBUG, show_debug),
        mouse_support=merged.mouse_support if merged.mouse_support is not None else True,
    )
    logger.debug(f"Resolved settings: {settings}")
    return settings
