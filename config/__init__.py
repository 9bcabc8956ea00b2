from config.settings import (
    BaseConfig,
    DevelopmentConfig,
    TestingConfig,
    ProductionConfig,
    CONFIGS,
    get_config_class,
    load_environment,
    parse_origins,
)

__all__ = [
    'BaseConfig',
    'DevelopmentConfig',
    'TestingConfig',
    'ProductionConfig',
    'CONFIGS',
    'get_config_class',
    'load_environment',
    'parse_origins',
]
