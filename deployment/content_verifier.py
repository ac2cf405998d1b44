"""
Deployed page verification
Fetches the new site and checks one element's text against an expected literal
"""
from typing import Callable, Optional

import click
import requests
from bs4 import BeautifulSoup

from core.logging import get_logger

logger = get_logger(__name__, stage="verify")

DEFAULT_SELECTOR = "body h1"
DEFAULT_EXPECTED_TEXT = "Automation for the People"


def endpoint_to_url(endpoint: str) -> str:
    """Environment CNAMEs come back without a scheme; the site is served over plain HTTP"""
    if endpoint.startswith(("http://", "https://")):
        return endpoint
    return f"http://{endpoint}"


def fetch_page(url: str, timeout: int = 30) -> Optional[BeautifulSoup]:
    """Download and parse a page, or None on any network failure"""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"Fetching {url} failed: {e}")
        return None

    try:
        return BeautifulSoup(response.text, "html.parser")
    except Exception as e:
        logger.error(f"Parsing {url} failed: {e}")
        return None


def verify_page_contents(
    endpoint: Optional[str],
    expected_text: str = DEFAULT_EXPECTED_TEXT,
    selector: str = DEFAULT_SELECTOR,
    timeout: int = 30,
    report: Callable[[str], None] = click.echo,
) -> bool:
    """
    Check that the first element matching ``selector`` reads exactly ``expected_text``.

    Args:
        endpoint: Environment hostname or full URL
        expected_text: Literal text the element must carry
        selector: CSS selector of the element to check
        timeout: Request timeout in seconds
        report: Sink for operator-facing messages

    Returns:
        True only on an exact match; every failure returns False
    """
    if not endpoint:
        report("Could not open page.")
        return False

    page = fetch_page(endpoint_to_url(endpoint), timeout=timeout)
    if page is None:
        report("Could not open page.")
        return False

    try:
        element = page.select_one(selector)
    except Exception as e:
        logger.error(f"Could not apply selector {selector!r}: {e}")
        element = None

    if element is None:
        report("Required element not found.")
        return False

    page_text = element.get_text()
    logger.info(f"Found {selector!r} text: {page_text!r}")
    return page_text == expected_text
