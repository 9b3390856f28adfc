"""
Browser Driver: Chrome WebDriver Configured for Silent PDF Downloads

Chrome is told to save downloads into the pipeline's output directory
without prompting, and to download PDFs instead of opening them in the
built-in viewer. Everything else about the browser is treated as an
opaque collaborator.
"""

from __future__ import annotations

from pathlib import Path
import logging

from selenium import webdriver
from selenium.webdriver.chrome.options import Options

logger = logging.getLogger(__name__)


def make_driver(download_dir: Path, headless: bool = False) -> "webdriver.Chrome":
    """
    Create a Chrome WebDriver configured for downloads.

    Args:
        download_dir: Directory where downloads will be saved
        headless: Whether to run in headless mode

    Returns:
        Configured Chrome WebDriver instance
    """
    opts = Options()
    if headless:
        opts.add_argument("--headless=new")
        opts.add_argument("--window-size=1920,1080")
    else:
        opts.add_argument("--start-maximized")
    opts.add_argument("--disable-blink-features=AutomationControlled")
    opts.add_argument("--disable-dev-shm-usage")

    # Configure download behavior
    prefs = {
        "download.default_directory": str(Path(download_dir).resolve()),
        "download.prompt_for_download": False,
        "download.directory_upgrade": True,
        "safebrowsing.enabled": True,
        "plugins.always_open_pdf_externally": True,  # Download PDFs instead of opening
    }
    opts.add_experimental_option("prefs", prefs)

    logger.info(f"[BROWSER] Starting Chrome (headless={headless}, downloads={download_dir})")
    return webdriver.Chrome(options=opts)
