"""
================================================================================
Allure Report Utilities
================================================================================

Reporting service for the UI suites. Step descriptions, pass/fail entries and
failure screenshots go to the Allure results directory; the same messages are
mirrored to loguru so console runs read the same as the report.

Features:
- Step / success / failure logging
- Text, JSON and screenshot attachments
- Environment widget (OS, Python, browser, environment)
- Result parsing, summary and `allure generate`

================================================================================
"""

import json
import platform
import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import allure
from loguru import logger


# ================================================================================
# Step Logging
# ================================================================================

def log_step(description: str) -> None:
    """
    Record a human-readable step in the log and in the Allure report.

    Args:
        description: What the test is about to do / just did
    """
    logger.info(description)
    with allure.step(description):
        pass


def log_success(message: str = "Test passed successfully") -> None:
    """Record a passing outcome."""
    logger.success(message)
    attach_text(message, name="Result")


def log_failure(message: str) -> None:
    """Record a failing outcome with its message."""
    logger.error(message)
    attach_text(message, name="Failure")


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """
    Attach text content to Allure report.

    Args:
        text: Text to attach
        name: Attachment name
    """
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_screenshot(path: Union[str, Path], name: str = "Screenshot") -> bool:
    """
    Attach a PNG file from disk.

    Returns:
        True if the file existed and was attached
    """
    path = Path(path)
    if not path.is_file():
        logger.warning(f"Screenshot not found, nothing attached: {path}")
        return False
    allure.attach.file(
        str(path),
        name=name,
        attachment_type=allure.attachment_type.PNG
    )
    return True


def write_environment_properties(
    results_dir: Union[str, Path],
    info: Optional[Dict[str, Any]] = None,
) -> Path:
    """
    Write the Allure environment widget file.

    OS and Python version are always included; ``info`` adds or overrides
    entries such as Browser and Environment.

    Returns:
        Path to environment.properties
    """
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)

    properties = {
        "OS": f"{platform.system()} {platform.release()}",
        "Python.Version": platform.python_version(),
    }
    properties.update({k: v for k, v in (info or {}).items() if v is not None})

    target = results_dir / "environment.properties"
    lines = [f"{key.replace(' ', '.')}={value}" for key, value in properties.items()]
    target.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.debug(f"Allure environment written: {target}")
    return target


# ================================================================================
# Report Processing
# ================================================================================

@dataclass
class TestResultSummary:
    """Summary of test execution results."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    unknown: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        """Calculate pass rate percentage."""
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "unknown": self.unknown,
            "pass_rate": f"{self.pass_rate:.2f}%",
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp,
        }


class AllureReportProcessor:
    """
    Processes Allure results and generates reports.
    """

    def __init__(
        self,
        results_dir: Path,
        report_dir: Optional[Path] = None,
    ):
        """
        Initialize processor.

        Args:
            results_dir: Allure results directory
            report_dir: Output report directory
        """
        self.results_dir = Path(results_dir)
        self.report_dir = Path(report_dir or self.results_dir.parent / "allure-report")

    def parse_results(self) -> List[Dict[str, Any]]:
        """
        Parse Allure result files.

        Returns:
            List of test result dictionaries
        """
        results = []

        for result_file in sorted(self.results_dir.glob("*-result.json")):
            try:
                with open(result_file, encoding="utf-8") as f:
                    results.append(json.load(f))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to parse {result_file}: {e}")

        return results

    def generate_summary(self) -> TestResultSummary:
        """
        Generate summary from results.

        Returns:
            TestResultSummary object
        """
        results = self.parse_results()
        summary = TestResultSummary()
        summary.total = len(results)

        for result in results:
            status = result.get("status", "unknown")
            if status == "passed":
                summary.passed += 1
            elif status == "failed":
                summary.failed += 1
            elif status == "broken":
                summary.broken += 1
            elif status == "skipped":
                summary.skipped += 1
            else:
                summary.unknown += 1

            summary.duration_ms += result.get("stop", 0) - result.get("start", 0)

        return summary

    def generate_report(self) -> bool:
        """
        Generate Allure HTML report.

        Returns:
            True if successful
        """
        if shutil.which("allure") is None:
            logger.warning("Allure CLI not found. Please install Allure to generate reports.")
            return False

        cmd = [
            "allure", "generate",
            str(self.results_dir),
            "-o", str(self.report_dir),
            "--clean"
        ]
        result = subprocess.run(cmd, capture_output=True, text=True)

        if result.returncode == 0:
            logger.info(f"Report generated at {self.report_dir}")
            return True
        logger.error(f"Report generation failed: {result.stderr}")
        return False

    def log_summary(self) -> TestResultSummary:
        """Log the summary and return it."""
        summary = self.generate_summary()
        logger.info("=" * 60)
        logger.info("TEST EXECUTION SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Total Tests:    {summary.total}")
        logger.info(f"Passed:         {summary.passed}")
        logger.info(f"Failed:         {summary.failed}")
        logger.info(f"Broken:         {summary.broken}")
        logger.info(f"Skipped:        {summary.skipped}")
        logger.info(f"Pass Rate:      {summary.pass_rate:.2f}%")
        logger.info(f"Duration:       {summary.duration_ms / 1000:.2f}s")
        logger.info("=" * 60)
        return summary


__all__ = [
    "log_step",
    "log_success",
    "log_failure",
    "attach_json",
    "attach_text",
    "attach_screenshot",
    "write_environment_properties",
    "TestResultSummary",
    "AllureReportProcessor",
]
