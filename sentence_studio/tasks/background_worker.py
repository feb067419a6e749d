# tasks/background_worker.py

import asyncio
import os
import traceback
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv

from sentence_studio.logging_config import setup_logger
from sentence_studio.tasks.audio_backfill import backfill_missing_audio

logger = setup_logger(__name__, "audio_backfill.log")

load_dotenv()

RETRY_AFTER_ERROR_SECONDS = 3600


def _format(moment: Optional[datetime], fallback: str) -> str:
    return moment.strftime('%Y-%m-%d %H:%M:%S') if moment else fallback


class BackgroundWorker:
    """Periodically fills in audio for sentences that were saved without it."""

    def __init__(self, interval_hours: float = None, batch_size: int = None,
                 job: Callable[[int], Awaitable[dict]] = None):
        self.interval_hours = interval_hours if interval_hours is not None else \
            float(os.getenv('AUDIO_BACKFILL_INTERVAL_HOURS', '24'))
        self.batch_size = batch_size if batch_size is not None else \
            int(os.getenv('AUDIO_BACKFILL_BATCH_SIZE', '50'))
        self.job = job or (lambda size: backfill_missing_audio(size))

        self.backfill_task: Optional[asyncio.Task] = None
        self._shutdown = True
        self.last_run: Optional[datetime] = None
        self.next_run: Optional[datetime] = None
        self.total_generated: int = 0
        self.run_count: int = 0

    async def run_once(self) -> dict:
        """Run one backfill pass now and fold its result into the counters."""
        start_time = datetime.now()
        self.last_run = start_time

        result = await self.job(self.batch_size)

        generated = result.get('generated', 0) if isinstance(result, dict) else int(result or 0)
        self.total_generated += generated
        self.run_count += 1

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Audio backfill finished in {duration:.2f}s: {generated} generated, "
                    f"{self.total_generated} total over {self.run_count} runs")
        return result

    async def periodic_backfill(self):
        while not self._shutdown:
            try:
                wait_seconds = self.interval_hours * 3600
                self.next_run = datetime.now() + timedelta(seconds=wait_seconds)
                logger.info(f"Next audio backfill at {_format(self.next_run, '')} "
                            f"(last run: {_format(self.last_run, 'Never')})")

                await asyncio.sleep(wait_seconds)
                await self.run_once()

            except asyncio.CancelledError:
                logger.info("Audio backfill task cancelled")
                break

            except Exception as e:
                logger.error(f"Error in periodic audio backfill: {e}")
                logger.error(traceback.format_exc())
                await asyncio.sleep(RETRY_AFTER_ERROR_SECONDS)

    def start(self):
        if self.backfill_task and not self.backfill_task.done():
            logger.warning("Background worker is already running")
            return

        self._shutdown = False
        self.backfill_task = asyncio.create_task(self.periodic_backfill())
        logger.info(f"Background worker started at {_format(datetime.now(), '')}, "
                    f"every {self.interval_hours}h, batch {self.batch_size}")

    def stop(self):
        self._shutdown = True
        if self.backfill_task:
            self.backfill_task.cancel()
        logger.info(f"Background worker stopped at {_format(datetime.now(), '')}")

    def get_status(self) -> dict:
        return {
            "running": not self._shutdown,
            "last_run": _format(self.last_run, "Never"),
            "next_run": _format(self.next_run, "Not scheduled yet"),
            "run_count": self.run_count,
            "total_generated": self.total_generated,
            "task_active": self.backfill_task is not None and not self.backfill_task.done(),
        }


# Global instance
worker = BackgroundWorker()
