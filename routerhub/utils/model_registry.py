"""
Model registry.

Resolves a requested model name to the upstream ModelConfig that serves it.
Only active configs take part; ties go to the higher priority, then the newer row.
"""

from typing import Optional, List, Dict, Any
from ..models import ModelConfig


def find_model_config(model_name: str) -> Optional[ModelConfig]:
    return ModelConfig.find_by_model(model_name)


def get_default_config() -> Optional[ModelConfig]:
    """Highest-priority active config"""
    configs = ModelConfig.get_all(include_inactive=False)
    return configs[0] if configs else None


def get_config_by_provider(name: str) -> Optional[ModelConfig]:
    """Active config registered under `name`"""
    config = ModelConfig.get_by_name(name)
    if config is None or not config.is_active:
        return None
    return config


def get_all_supported_models() -> List[str]:
    return ModelConfig.supported_models()


def is_model_supported(model_name: str) -> bool:
    return find_model_config(model_name) is not None


def get_model_info(model_name: str) -> Optional[Dict[str, Any]]:
    config = find_model_config(model_name)
    if config is None:
        return None
    return {
        'model': model_name,
        'provider': config.provider,
        'providerName': config.name,
        'apiUrl': config.api_url,
        'hasApiKey': bool(config.api_key),
    }
