from .settings import (
    Settings,
    LLMSettings,
    AppleImportSettings,
    DashboardSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "LLMSettings",
    "AppleImportSettings",
    "DashboardSettings",
    "get_settings",
]
