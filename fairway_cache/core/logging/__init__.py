from .logger import (
    clear_scope,
    get_logger,
    get_scope,
    log_stage,
    set_scope,
    setup_logging,
)

__all__ = [
    "clear_scope",
    "get_logger",
    "get_scope",
    "log_stage",
    "set_scope",
    "setup_logging",
]
