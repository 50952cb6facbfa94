from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from playwright.sync_api import Locator, Page, sync_playwright

from jobfill.config import Settings, get_settings

_FIELD_LABELS_SCRIPT = """
() => {
  const visible = (el) => !!(el.offsetWidth || el.offsetHeight || el.getClientRects().length);
  const selector = [
    'input:not([type=hidden]):not([type=submit]):not([type=button]):not([type=file])',
    'textarea',
    'select',
  ].join(', ');
  const labels = [];
  for (const field of document.querySelectorAll(selector)) {
    if (!visible(field)) continue;
    let text = '';
    if (field.labels && field.labels.length) {
      text = field.labels[0].innerText;
    } else {
      text = field.getAttribute('aria-label') || field.getAttribute('placeholder') || '';
    }
    text = text.trim();
    if (text) labels.push(text);
  }
  return labels;
}
"""


@dataclass(frozen=True, slots=True)
class Target:
    """Selector-like description of an element; exactly one of css, label, placeholder or role is set."""

    css: str | None = None
    label: str | None = None
    placeholder: str | None = None
    role: str | None = None
    name: str | None = None

    def describe(self) -> str:
        if self.css is not None:
            return f"css={self.css}"
        if self.label is not None:
            return f"label={self.label}"
        if self.placeholder is not None:
            return f"placeholder={self.placeholder}"
        if self.role is not None:
            return f"role={self.role}[name={self.name}]" if self.name else f"role={self.role}"
        raise ValueError("empty target")


class PageContext(Protocol):
    @property
    def url(self) -> str: ...

    def count(self, target: Target) -> int: ...

    def fill(self, target: Target, value: str) -> None: ...

    def read(self, target: Target) -> str: ...

    def click(self, target: Target) -> None: ...

    def upload(self, target: Target, path: Path) -> None: ...

    def field_labels(self) -> list[str]: ...

    def wait_until_ready(self) -> None: ...


class PlaywrightPage:
    """PageContext over a Playwright sync page. Actions apply to the first match."""

    def __init__(self, page: Page):
        self.page = page

    @property
    def url(self) -> str:
        return self.page.url

    def count(self, target: Target) -> int:
        return self._locate(target).count()

    def fill(self, target: Target, value: str) -> None:
        self._locate(target).first.fill(value)

    def read(self, target: Target) -> str:
        return self._locate(target).first.input_value()

    def click(self, target: Target) -> None:
        self._locate(target).first.click()

    def upload(self, target: Target, path: Path) -> None:
        self._locate(target).first.set_input_files(str(path))

    def field_labels(self) -> list[str]:
        return list(self.page.evaluate(_FIELD_LABELS_SCRIPT))

    def wait_until_ready(self) -> None:
        self.page.wait_for_load_state("domcontentloaded")

    def _locate(self, target: Target) -> Locator:
        if target.css is not None:
            return self.page.locator(target.css)
        if target.label is not None:
            return self.page.get_by_label(target.label)
        if target.placeholder is not None:
            return self.page.get_by_placeholder(target.placeholder)
        if target.role is not None:
            if target.name:
                return self.page.get_by_role(target.role, name=target.name)  # type: ignore[arg-type]
            return self.page.get_by_role(target.role)  # type: ignore[arg-type]
        raise ValueError("empty target")


@contextmanager
def open_page(url: str, settings: Settings | None = None) -> Iterator[PlaywrightPage]:
    active = settings or get_settings()
    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=active.browser_headless)
        try:
            page = browser.new_page()
            page.set_default_timeout(active.browser_action_timeout_sec * 1000)
            page.set_default_navigation_timeout(active.browser_nav_timeout_sec * 1000)
            page.goto(url, wait_until="domcontentloaded")
            yield PlaywrightPage(page)
        finally:
            browser.close()
