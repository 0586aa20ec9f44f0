"""
Package init file for parity.config module.
Exports the GlobalConfig class and related functions.
"""

from .settings import (
    GlobalConfig,
    CampaignConfig,
    NormalizerConfig,
    ReferenceConfig,
    CandidateConfig,
    MinimizerConfig,
    GeneratorConfig,
    InvalidSettingError,
    get_config,
    set_config
)
from .paths import (
    get_parity_home,
    get_config_path,
    get_bootstrap_cache_dir,
    get_default_output_dir
)

__all__ = [
    'GlobalConfig',
    'CampaignConfig',
    'NormalizerConfig',
    'ReferenceConfig',
    'CandidateConfig',
    'MinimizerConfig',
    'GeneratorConfig',
    'InvalidSettingError',
    'get_config',
    'set_config',
    'get_parity_home',
    'get_config_path',
    'get_bootstrap_cache_dir',
    'get_default_output_dir'
]
