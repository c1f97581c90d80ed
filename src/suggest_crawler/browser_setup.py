"""
Browser installation helper.

Downloads the browser engine Playwright needs for dynamic crawling.
"""
import logging
import subprocess
import sys

logger = logging.getLogger(__name__)


def install_browser(browser_type: str = "chromium") -> bool:
    """
    Run playwright install to download browser binaries.

    Args:
        browser_type: Engine to install (chromium, firefox or webkit)

    Returns:
        True if the browser was installed
    """
    try:
        from playwright.async_api import async_playwright  # noqa: F401
    except ImportError:
        logger.error(
            "Playwright is not installed. Install with: pip install playwright"
        )
        return False

    logger.info(f"Running 'playwright install {browser_type}'...")
    try:
        result = subprocess.run(
            [sys.executable, "-m", "playwright", "install", browser_type],
            check=True,
            capture_output=True,
            text=True
        )
    except subprocess.CalledProcessError as e:
        logger.error(f"Error installing {browser_type} browser for Playwright: {e}")
        if e.stderr:
            logger.error(e.stderr)
        logger.error(
            "Please run the following command manually:\n"
            f"  python -m playwright install {browser_type}"
        )
        return False
    except FileNotFoundError as e:
        logger.error(f"Could not find Python executable: {e}")
        return False

    if result.stdout:
        logger.info(result.stdout)
    logger.info(f"{browser_type} browser installed successfully.")
    return True
