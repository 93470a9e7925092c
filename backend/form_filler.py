"""
Field filling helpers for postback-driven ASP.NET forms
"""

import logging
from typing import Dict, Iterable, List, Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from errors import SubmissionTimeout
from form_layout import CascadeSpec, FieldSpec, PlanStep

logger = logging.getLogger(__name__)

# Label matching waits for the option to show up; keep it short so the
# value fallback is reached quickly.
LABEL_MATCH_TIMEOUT_MS = 5000

OPTIONS_POPULATED_JS = """(selector) => {
    const el = document.querySelector(selector);
    return !!el && !!el.options && el.options.length > 1;
}"""


async def first_existing(page: Page, selectors: Iterable[str]) -> Optional[str]:
    """Return the first selector that matches something on the page"""
    for selector in selectors:
        if await page.locator(selector).count():
            return selector
    return None


async def type_into(page: Page, selector: str, text: str):
    await page.wait_for_selector(selector, state="visible")
    await page.fill(selector, "")
    await page.type(selector, text)


async def safe_select(page: Page, selector: str, label_or_value: str):
    """Select by visible label, falling back to the option value"""
    await page.wait_for_selector(selector, state="visible")
    try:
        selected = await page.select_option(
            selector, label=label_or_value, timeout=LABEL_MATCH_TIMEOUT_MS
        )
        if selected:
            return
    except PlaywrightTimeoutError:
        logger.debug("No option labelled '%s' in %s, trying value", label_or_value, selector)
    await page.select_option(selector, label_or_value)


async def fill_if_exists(page: Page, selectors: Iterable[str], value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    selector = await first_existing(page, selectors)
    if selector:
        await type_into(page, selector, value)
    return selector


async def select_if_exists(page: Page, selectors: Iterable[str], value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    selector = await first_existing(page, selectors)
    if selector:
        await safe_select(page, selector, value)
    return selector


async def select_with_postback(
    page: Page,
    selector: str,
    label_or_value: str,
    dependent_selector: str,
    timeout_ms: Optional[float] = None,
):
    """
    Select a value whose change triggers a postback, then wait until the
    dependent dropdown has more than its placeholder option.
    """
    await safe_select(page, selector, label_or_value)
    try:
        await page.wait_for_load_state("networkidle")
        await page.wait_for_function(OPTIONS_POPULATED_JS, arg=dependent_selector, timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise SubmissionTimeout(
            f"Options for {dependent_selector} did not load after selecting '{label_or_value}'"
        ) from e


class FormFiller:
    """Runs a fill plan against one page, one step at a time"""

    def __init__(self, page: Page, cascade_timeout_ms: Optional[float] = None):
        self.page = page
        self.cascade_timeout_ms = cascade_timeout_ms
        self.filled: List[str] = []

    async def run(self, plan: Iterable[PlanStep], values: Dict[str, str]) -> List[str]:
        for step in plan:
            if isinstance(step, CascadeSpec):
                await self.fill_cascade(step, values)
            else:
                await self.fill_field(step, values.get(step.name))
        return self.filled

    async def fill_field(self, spec: FieldSpec, value: Optional[str]) -> bool:
        if spec.kind == "select":
            selector = await select_if_exists(self.page, spec.selectors, value)
        else:
            selector = await fill_if_exists(self.page, spec.selectors, value)

        if selector:
            self.filled.append(spec.name)
            return True
        if value:
            logger.debug("Field %s not present on page, skipped", spec.name)
        return False

    async def fill_cascade(self, cascade: CascadeSpec, values: Dict[str, str]):
        levels = cascade.levels
        if await first_existing(self.page, levels[0].selectors) is None:
            logger.info("ℹ️ %s dropdowns not on page, skipping", cascade.name)
            return

        for level, dependent in zip(levels, levels[1:]):
            value = values.get(level.name)
            if not value:
                logger.warning("⚠️ No value for %s, %s left incomplete", level.name, cascade.name)
                return
            selector = await first_existing(self.page, level.selectors) or level.selectors[0]
            dependent_selector = (
                await first_existing(self.page, dependent.selectors) or dependent.selectors[0]
            )
            await select_with_postback(
                self.page, selector, value, dependent_selector, timeout_ms=self.cascade_timeout_ms
            )
            self.filled.append(level.name)
            logger.info("   ✅ %s = %s", level.name, value)

        last = levels[-1]
        await self.fill_field(last, values.get(last.name))
