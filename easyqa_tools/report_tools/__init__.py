"""Allure reporting helpers."""

from .allure_utils import (
    AllureReportProcessor,
    TestResultSummary,
    attach_json,
    attach_screenshot,
    attach_text,
    log_failure,
    log_step,
    log_success,
    write_environment_properties,
)

__all__ = [
    "AllureReportProcessor",
    "TestResultSummary",
    "attach_json",
    "attach_screenshot",
    "attach_text",
    "log_failure",
    "log_step",
    "log_success",
    "write_environment_properties",
]
