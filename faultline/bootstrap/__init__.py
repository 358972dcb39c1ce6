"""
bootstrap/ - Configuration, composition root and entry points

Module 6: Bootstrap Layer
"""

from .config import (
    GeneratorConfig,
    RecoveryConfig,
    CoordinatorConfig,
    LoggingConfig,
    FaultlineConfig,
    load_config,
)

from .app import (
    AppState,
    AppContext,
    FaultlineApp,
    create_app,
)

from .entrypoints import (
    setup_logging,
    cli_main,
)

__all__ = [
    # Config
    "GeneratorConfig",
    "RecoveryConfig",
    "CoordinatorConfig",
    "LoggingConfig",
    "FaultlineConfig",
    "load_config",
    # App
    "AppState",
    "AppContext",
    "FaultlineApp",
    "create_app",
    # Entrypoints
    "setup_logging",
    "cli_main",
]
