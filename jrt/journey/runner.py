"""
JourneyRunner — ジャーニーの再生エンジン

Playwright sync API でブラウザを起動し、ジャーニーを順に実行する。
ジャーニーごとに新しい BrowserContext / Page を用意し、
例外は失敗結果として記録する（後続のジャーニーは継続）。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Optional

if TYPE_CHECKING:
    from playwright.sync_api import Browser

    from . import Journey

logger = logging.getLogger(__name__)


@dataclass
class JourneyOutcome:
    """単一ジャーニーの実行結果。

    Attributes:
        name: ジャーニー名
        status: 実行結果（passed / failed）
        duration_ms: 実行時間（ミリ秒）
        error: エラーメッセージ（失敗時のみ）
    """

    name: str
    status: Literal["passed", "failed"] = "passed"
    duration_ms: float = 0.0
    error: Optional[str] = None


class JourneyRunner:
    """ジャーニーを順に実行するランナー。

    使用例::

        runner = JourneyRunner(headless=False)
        outcomes = runner.run(journeys)
    """

    def __init__(
        self,
        headless: bool = True,
        channel: str = "chromium",
        viewport: tuple[int, int] = (1280, 720),
    ) -> None:
        """ランナーを初期化する。

        Args:
            headless: True でブラウザを表示しない
            channel: ブラウザチャンネル
            viewport: ビューポートサイズ (幅, 高さ)
        """
        self._headless = headless
        self._channel = channel
        self._viewport = viewport

    def run(self, journeys: list[Journey]) -> list[JourneyOutcome]:
        """全ジャーニーを実行する。

        Args:
            journeys: 実行するジャーニー

        Returns:
            ジャーニーごとの実行結果

        Raises:
            playwright.sync_api.Error: ブラウザを起動できなかった場合
        """
        from playwright.sync_api import sync_playwright

        outcomes: list[JourneyOutcome] = []
        with sync_playwright() as pw:
            launch_kwargs: dict = {"headless": self._headless}
            if self._channel != "chromium":
                launch_kwargs["channel"] = self._channel
            browser = pw.chromium.launch(**launch_kwargs)
            try:
                for item in journeys:
                    outcomes.append(self._run_one(browser, item))
            finally:
                browser.close()
        return outcomes

    def _run_one(self, browser: Browser, item: Journey) -> JourneyOutcome:
        context = browser.new_context(
            viewport={"width": self._viewport[0], "height": self._viewport[1]},
        )
        page = context.new_page()
        outcome = JourneyOutcome(name=item.name)
        start = time.perf_counter()
        try:
            item.func(page, context)
        except Exception as exc:
            outcome.status = "failed"
            outcome.error = f"{type(exc).__name__}: {exc}"
            logger.debug("ジャーニーが失敗しました: %s", item.name, exc_info=True)
        finally:
            outcome.duration_ms = (time.perf_counter() - start) * 1000
            try:
                context.close()
            except Exception as exc:
                logger.debug("Context のクローズをスキップ: %s", exc)
        return outcome
