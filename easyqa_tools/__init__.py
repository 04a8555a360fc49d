"""
================================================================================
EasyQA Tools
================================================================================

Shared infrastructure for the EasyQA UI automation suites.

Modules:
    - common: Configuration store and loguru logging setup
    - report_tools: Allure step logging, attachments and report processing

Example:
    from easyqa_tools.common import get_config, init_logger
    from easyqa_tools.report_tools.allure_utils import log_step

    init_logger()
    log_step(f"Opening {get_config('url')}")

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "report_tools",
]
