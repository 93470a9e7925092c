"""
Submit the verification form and read back the outcome
"""

import asyncio
import logging
from typing import List, Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from errors import ReferenceNotFoundError, RemoteValidationError, SubmissionTimeout
from form_layout import (
    ERROR_SUMMARY,
    ERROR_TEXT_PATTERN,
    REFERENCE_LABEL_PATTERN,
    REFERENCE_SELECTORS,
    REFERENCE_TOKEN_PATTERN,
    SUBMIT_BUTTON,
)

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_TIMEOUT_MS = 25000

PAGE_MARKUP_JS = "() => document.documentElement.innerHTML"
PAGE_CHANGED_JS = "(oldHtml) => document.documentElement.innerHTML !== oldHtml"


def parse_reference_from_label(text: str) -> Optional[str]:
    """Reference number from a label element's text"""
    text = (text or "").strip()
    match = REFERENCE_LABEL_PATTERN.search(text)
    if match:
        return match.group(1)
    match = REFERENCE_TOKEN_PATTERN.search(text)
    return match.group(1) if match else None


def parse_reference_from_markup(html: str) -> Optional[str]:
    """Fallback scan of the whole page for a 'Reference No' label"""
    match = REFERENCE_LABEL_PATTERN.search(html or "")
    return match.group(1).strip() if match else None


async def click_and_wait_for_change(page: Page, selector: str, timeout_ms: float):
    """
    Click and wait until the rendered markup differs from before the click.
    Network idle alone misses postbacks that re-render in place.
    """
    previous = await page.evaluate(PAGE_MARKUP_JS)
    tasks = [
        asyncio.ensure_future(page.click(selector)),
        asyncio.ensure_future(page.wait_for_load_state("networkidle")),
        asyncio.ensure_future(
            page.wait_for_function(PAGE_CHANGED_JS, arg=previous, timeout=timeout_ms)
        ),
    ]
    try:
        await asyncio.gather(*tasks)
    except PlaywrightTimeoutError as e:
        raise SubmissionTimeout(
            f"Page did not change within {int(timeout_ms / 1000)}s after submit"
        ) from e
    finally:
        # Nothing may outlive this call; the session is torn down next
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


async def find_validation_errors(page: Page) -> List[str]:
    messages = []
    summary = page.locator(ERROR_SUMMARY)
    if await summary.count():
        text = (await summary.first.text_content() or "").strip()
        messages.append(text or "Validation summary shown")

    for text in await page.locator("span").all_text_contents():
        if ERROR_TEXT_PATTERN.search(text or ""):
            messages.append(text.strip())
    return messages


async def extract_reference_number(page: Page) -> str:
    for selector in REFERENCE_SELECTORS:
        locator = page.locator(selector)
        if await locator.count():
            reference = parse_reference_from_label(await locator.first.text_content() or "")
            if reference:
                logger.info("🔖 Reference found via %s", selector)
                return reference

    reference = parse_reference_from_markup(await page.content())
    if reference:
        logger.info("🔖 Reference found in page markup")
        return reference

    raise ReferenceNotFoundError(
        "Reference number not found after submission. "
        "The form may have been submitted; check manually."
    )


async def submit_and_extract(page: Page, change_timeout_ms: float = DEFAULT_CHANGE_TIMEOUT_MS) -> str:
    """Submit the form and return the reference number shown afterwards"""
    logger.info("🚀 Submitting form...")
    await page.wait_for_selector(SUBMIT_BUTTON, state="visible")
    await click_and_wait_for_change(page, SUBMIT_BUTTON, change_timeout_ms)

    errors = await find_validation_errors(page)
    if errors:
        raise RemoteValidationError(
            "Validation error on target site. Check required fields / formats.",
            details=errors,
        )

    logger.info("🔍 Extracting reference number...")
    return await extract_reference_number(page)
