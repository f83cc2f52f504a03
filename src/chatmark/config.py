"""
Управление конфигурацией рендерера.

Хранит настройки в JSON-файле в домашней директории пользователя
(~/.chatmark/config.json). Директорию можно переопределить переменной
окружения CHATMARK_CONFIG_DIR.
"""

import json
import os
import logging
from pathlib import Path
from typing import Optional, Any, Dict

from pydantic import ValidationError

from chatmark.exceptions import ConfigError
from chatmark.models import ExtensionSet, RendererConfig

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "CHATMARK_CONFIG_DIR"


class ConfigManager:
    """Менеджер конфигурации рендерера."""

    CONFIG_DIR_NAME = ".chatmark"
    CONFIG_FILE_NAME = "config.json"

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Инициализация менеджера конфигурации.

        Args:
            config_dir: Путь к директории конфигурации.
                        По умолчанию $CHATMARK_CONFIG_DIR или ~/.chatmark/
        """
        if config_dir is None:
            env_dir = os.environ.get(CONFIG_DIR_ENV)
            config_dir = Path(env_dir) if env_dir else Path.home() / self.CONFIG_DIR_NAME
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / self.CONFIG_FILE_NAME
        self._config: Optional[RendererConfig] = None

    def _ensure_config_dir(self) -> None:
        """Создать директорию конфигурации если не существует."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> RendererConfig:
        """
        Загрузить конфигурацию из файла.

        Поврежденный файл не является ошибкой: используются значения
        по умолчанию.
        """
        if self._config is not None:
            return self._config

        if not self.config_file.exists():
            self._config = RendererConfig()
            return self._config

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            self._config = RendererConfig.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Invalid config file {self.config_file}, using defaults: {e}")
            self._config = RendererConfig()
        return self._config

    def save(self, config: Optional[RendererConfig] = None) -> None:
        """
        Сохранить конфигурацию в файл.

        Args:
            config: Конфигурация для сохранения.
                   Если не указана, сохраняет текущую.
        """
        if config is not None:
            self._config = config
        if self._config is None:
            return

        self._ensure_config_dir()
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(self._config.model_dump(mode="json"), f, indent=2, ensure_ascii=False)

    def get_config(self) -> RendererConfig:
        """Получить текущую конфигурацию."""
        if self._config is None:
            return self.load()
        return self._config

    def as_dict(self) -> Dict[str, Any]:
        """Плоский словарь настроек (extensions.* раскрыты)."""
        data = self.get_config().model_dump(mode="json")
        extensions = data.pop("extensions", {})
        for name, value in extensions.items():
            data[f"extensions.{name}"] = value
        return data

    def set_value(self, key: str, value: Any) -> RendererConfig:
        """
        Установить значение настройки и сохранить.

        Args:
            key: Имя поля, например `theme` или `extensions.tables`
            value: Новое значение (строки приводятся pydantic)

        Raises:
            ConfigError: Неизвестный ключ или недопустимое значение
        """
        config = self.get_config()
        try:
            if key.startswith("extensions."):
                name = key.split(".", 1)[1]
                if name not in ExtensionSet.model_fields:
                    raise ConfigError(f"Unknown setting: {key}", key=key)
                data = config.extensions.model_dump()
                data[name] = value
                config.extensions = ExtensionSet.model_validate(data)
            else:
                if key not in RendererConfig.model_fields or key == "extensions":
                    raise ConfigError(f"Unknown setting: {key}", key=key)
                setattr(config, key, value)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid value for {key}: {value!r}",
                key=key,
                details={"errors": e.errors(include_url=False)},
            ) from e

        self.save(config)
        logger.info(f"Config updated: {key}={value!r}")
        return config

    def reset(self) -> RendererConfig:
        """Сбросить настройки к значениям по умолчанию."""
        self._config = RendererConfig()
        self.save()
        return self._config


# Глобальный экземпляр менеджера конфигурации
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_dir: Optional[Path] = None) -> ConfigManager:
    """
    Получить глобальный экземпляр менеджера конфигурации.

    Args:
        config_dir: Путь к директории конфигурации

    Returns:
        ConfigManager
    """
    global _config_manager

    if _config_manager is None or config_dir is not None:
        _config_manager = ConfigManager(config_dir)

    return _config_manager
