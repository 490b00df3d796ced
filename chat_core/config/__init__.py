"""配置层：pydantic-settings 驱动的全局配置。"""

from chat_core.config.settings import ChatSettings, Settings, settings

__all__ = ["ChatSettings", "Settings", "settings"]
