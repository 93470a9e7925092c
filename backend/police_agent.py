"""
Playwright automation agent for the Rajasthan Police tenant verification form
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeoutError

from attachments import AttachmentResolver
from browser_session import BrowserSessionManager
from config import Settings, get_settings
from errors import PoliceFormError, SubmissionError, SubmissionTimeout
from form_filler import FormFiller
from form_layout import FILL_PLAN, ID_PHOTO, PASSPORT_PHOTO, TENANT_TAB, FileSpec
from submission import submit_and_extract
from tenant_record import ResolvedSubmission, mask_identifier

logger = logging.getLogger(__name__)


class PoliceFormAgent:
    """Fills and submits one tenant verification form per instance"""

    def __init__(
        self,
        session_manager: BrowserSessionManager,
        settings: Optional[Settings] = None,
        attachments: Optional[AttachmentResolver] = None,
    ):
        self.session_manager = session_manager
        self.settings = settings or get_settings()
        self.attachments = attachments or AttachmentResolver()
        self.page: Optional[Page] = None
        self.state = "idle"
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        # Debug captures are only written in development mode
        self.session_debug_dir: Optional[Path] = None
        if self.settings.is_development:
            self.session_debug_dir = Path(self.settings.debug_dir) / self.session_id

    async def submit_tenant(self, submission: ResolvedSubmission) -> str:
        """
        Run the whole submission and return the reference number.

        Raises a PoliceFormError subclass on failure. The browser session and
        any downloaded attachments are released on every exit path.
        """
        logger.info(
            "📋 Processing police form submission for: %s (id %s)",
            submission.display_name,
            mask_identifier(submission.get("id_number")),
        )
        if submission.defaulted_fields:
            logger.info("ℹ️ Using defaults for: %s", ", ".join(submission.defaulted_fields))

        try:
            async with self.session_manager.acquire() as session:
                self.page = session.page
                try:
                    return await self._run(submission)
                except (PoliceFormError, PlaywrightError):
                    await self._save_debug_markup("failed")
                    raise
        except PoliceFormError as e:
            self.state = e.error_kind
            raise
        except PlaywrightTimeoutError as e:
            self.state = "timeout"
            raise SubmissionTimeout(f"Timed out waiting for the police website: {e}") from e
        except PlaywrightError as e:
            self.state = "submission_error"
            raise SubmissionError(f"Browser automation failed: {e}") from e
        finally:
            self.page = None
            self.attachments.cleanup()

    async def _run(self, submission: ResolvedSubmission) -> str:
        await self._open_form()

        self.state = "filling"
        logger.info("📝 Filling form fields...")
        filler = FormFiller(self.page, cascade_timeout_ms=self.settings.browser_timeout_ms)
        filled = await filler.run(FILL_PLAN, submission.form_values())
        logger.info("✅ Filled %d fields", len(filled))
        await self._take_debug_screenshot("02_fields_filled")

        logger.info("📁 Processing file uploads...")
        await self._attach(PASSPORT_PHOTO, submission.get(PASSPORT_PHOTO.name))
        await self._attach(ID_PHOTO, submission.get(ID_PHOTO.name))
        await self._take_debug_screenshot("03_before_submit")

        self.state = "submitting"
        reference = await submit_and_extract(
            self.page, change_timeout_ms=self.settings.submit_change_timeout_ms
        )
        self.state = "success"
        await self._take_debug_screenshot("04_submitted")
        logger.info("✅ Form submitted successfully. Reference: %s", reference)
        return reference

    async def _open_form(self):
        logger.info("🌐 Navigating to police website...")
        await self.page.goto(self.settings.police_form_url, wait_until="domcontentloaded")
        await self.page.wait_for_load_state("networkidle")

        tenant_tab = self.page.locator(TENANT_TAB)
        if await tenant_tab.count():
            await tenant_tab.first.click()
            await self.page.wait_for_load_state("networkidle")
        await self._take_debug_screenshot("01_form_opened")

    async def _attach(self, spec: FileSpec, reference: str):
        if not reference:
            if spec is PASSPORT_PHOTO:
                logger.warning("⚠️ No passport photo provided, the site will likely reject the form")
            return

        path = await self.attachments.resolve(reference)
        try:
            await self.page.set_input_files(spec.selector, path)
            logger.info("   ✅ Attached %s", spec.name)
        except PlaywrightError as e:
            # Upload controls vary between form revisions
            logger.warning("⚠️ Could not attach %s: %s", spec.name, e)

    async def _take_debug_screenshot(self, step_name: str):
        if self.session_debug_dir is None or self.page is None:
            return
        try:
            screenshots = self.session_debug_dir / "screenshots"
            screenshots.mkdir(parents=True, exist_ok=True)
            path = screenshots / f"{step_name}.png"
            await self.page.screenshot(path=str(path), full_page=True)
            logger.debug("📸 Screenshot captured: %s", path)
        except (PlaywrightError, OSError) as e:
            logger.warning("⚠️ Failed to take screenshot: %s", e)

    async def _save_debug_markup(self, label: str):
        if self.session_debug_dir is None or self.page is None:
            return
        try:
            self.session_debug_dir.mkdir(parents=True, exist_ok=True)
            path = self.session_debug_dir / f"{self.session_id}_{label}.html"
            path.write_text(await self.page.content(), encoding="utf-8")
            logger.info("🗂️ Page markup saved to: %s", path)
        except (PlaywrightError, OSError) as e:
            logger.warning("⚠️ Failed to save debug markup: %s", e)
