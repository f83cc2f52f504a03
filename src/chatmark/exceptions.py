"""
Исключения для chatmark.

Разбор markdown никогда не бросает исключений: некорректный ввод
чинится или выводится как текст. Исключения ниже сигнализируют
только об ошибках использования API и конфигурации.
"""

from typing import Optional, Dict, Any


class ChatMarkError(Exception):
    """Базовое исключение chatmark."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigError(ChatMarkError):
    """Некорректный ключ или значение конфигурации."""
    
    def __init__(self, message: str, key: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.key = key
        super().__init__(message, details)


class LatexShieldReusedError(ChatMarkError):
    """LatexShield уже использован для другого прохода."""
    
    def __init__(self, message: str = "LatexShield instance is single-use", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ScopeReleasedError(ChatMarkError):
    """Попытка создать обработчик в уже освобождённом RenderScope."""
    
    def __init__(self, message: str = "Render scope already released", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
