"""
Translation Pipeline for RPGMJsonTranslator.
Orchestrates the entire translation workflow including:
- Archive scanning and text extraction
- Priority ordering of data files
- Sequential batch translation with progress/throughput tracking
- Patching translated text back into copies of the documents
"""
import asyncio
import json
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Tuple

from .batch_translator import BatchTranslator
from .cancellation import CancellationToken
from .constants import (
    API_KEY_ENV,
    DEFAULT_BATCH_SIZE,
    DEFAULT_INTER_BATCH_DELAY_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_RATE_LIMIT_BACKOFF,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_TARGET_LANG,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_VALIDATE_CONTROL_CODES,
    FileRecord,
)
from .enums import FileStatus, PipelineStage
from .patcher import Patcher
from .progress import ProgressSnapshot, ProgressTracker
from .scanner import scan_archive
from .translator import BaseTranslator, ClaudeTranslator, DryRunTranslator
from .validation import Validator

Listener = Callable[[str, Any], None]


def create_translator(settings: dict) -> BaseTranslator:
    """Build the backend described by ``settings``."""
    if settings.get("dry_run", False):
        return DryRunTranslator()
    return ClaudeTranslator(
        api_key=settings.get("api_key") or os.environ.get(API_KEY_ENV, ""),
        model=settings.get("model", DEFAULT_MODEL),
        target_lang=settings.get("target_lang", DEFAULT_TARGET_LANG),
        max_tokens=settings.get("max_tokens", DEFAULT_MAX_TOKENS),
        timeout_seconds=settings.get("request_timeout", DEFAULT_TIMEOUT_SECONDS),
    )


def serialize_document(document: Any) -> str:
    """Compact JSON, as the engine writes its own data files."""
    return json.dumps(document, ensure_ascii=False, separators=(',', ':'))


class TranslationPipeline:
    """
    Main translation pipeline: Setup -> Scanned -> Translating -> Done.

    Exactly one backend call is in flight at a time. Observers subscribe
    with ``subscribe(callback)`` and receive ``(event, payload)`` pairs:
    ``"stage"`` (PipelineStage), ``"file"`` (FileRecord),
    ``"progress"`` (ProgressSnapshot) and ``"log"`` ((level, message)).
    """

    def __init__(
        self,
        settings: Optional[dict] = None,
        translator: Optional[BaseTranslator] = None,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            settings: Dictionary containing:
                - batch_size: Items per backend call
                - max_retries / rate_limit_backoff / retry_backoff: Retry policy
                - inter_batch_delay_ms: Pause between two batches of a file
                - validate_control_codes: Drop translations that lost codes
                - dry_run / api_key / model / target_lang: Backend selection
            translator: Backend to use instead of building one from settings
            sleep: Delay primitive (defaults to asyncio.sleep)
            clock: Monotonic clock for throughput (defaults to time.monotonic)
        """
        self.settings = settings or {}
        self.logger = logging.getLogger("Pipeline")
        self._sleep = sleep or asyncio.sleep

        self.batch_size = max(1, int(self.settings.get("batch_size", DEFAULT_BATCH_SIZE)))
        self.inter_batch_delay = self.settings.get("inter_batch_delay_ms", DEFAULT_INTER_BATCH_DELAY_MS) / 1000.0
        self.validate_codes = self.settings.get("validate_control_codes", DEFAULT_VALIDATE_CONTROL_CODES)

        self.batch_translator = BatchTranslator(
            max_retries=self.settings.get("max_retries", DEFAULT_MAX_RETRIES),
            rate_limit_backoff=self.settings.get("rate_limit_backoff", DEFAULT_RATE_LIMIT_BACKOFF),
            retry_backoff=self.settings.get("retry_backoff", DEFAULT_RETRY_BACKOFF),
            sleep=self._sleep,
        )
        self.translator = translator
        self._owns_translator = translator is None

        self.token = CancellationToken()
        self.progress = ProgressTracker(clock) if clock else ProgressTracker()
        self.stage = PipelineStage.SETUP
        self.files: List[FileRecord] = []
        self._listeners: List[Listener] = []

    # --- Observation ---

    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def _emit(self, event: str, payload: Any):
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception as e:
                self.logger.warning(f"Listener failed on '{event}': {e}")

    def _log(self, level: str, message: str):
        getattr(self.logger, level if level != "success" else "info")(message)
        self._emit("log", (level, message))

    def _set_stage(self, stage: PipelineStage):
        self.stage = stage
        self._emit("stage", stage)

    def _set_file(self, record: FileRecord, **changes):
        for key, value in changes.items():
            setattr(record, key, value)
        self._emit("file", record)

    def _publish_progress(self) -> ProgressSnapshot:
        snapshot = self.progress.snapshot()
        self._emit("progress", snapshot)
        return snapshot

    def snapshot(self) -> ProgressSnapshot:
        return self.progress.snapshot()

    def file_states(self) -> Dict[str, Dict[str, Any]]:
        return {f.name: {"status": f.status.value, "progress": f.progress} for f in self.files}

    # --- Control ---

    def stop(self):
        """Request pipeline stop. Safe to call from any thread."""
        self.token.cancel()

    @property
    def active_files(self) -> List[FileRecord]:
        return [f for f in self.files if f.items]

    def scan(self, archive) -> List[FileRecord]:
        """Extract text from every supported entry of ``archive``."""
        self.files = scan_archive(archive)
        active = self.active_files
        total_strings = sum(len(f.items) for f in self.files)
        self.progress.reset(total_items=total_strings, total_files=len(active))

        self._log("info", f"{len(self.files)} JSON files, {len(active)} with text, {total_strings} English strings")
        for f in active:
            self.logger.debug(f"   {f.base_name}: {len(f.items)} strings")
        self._set_stage(PipelineStage.SCANNED)
        self._publish_progress()
        return self.files

    async def run(self) -> List[FileRecord]:
        """Translate every scanned file in priority order."""
        if self.stage is not PipelineStage.SCANNED:
            raise RuntimeError(f"Cannot start translation from stage '{self.stage.value}'")
        if self.translator is None:
            self.translator = create_translator(self.settings)

        self._set_stage(PipelineStage.TRANSLATING)
        self.progress.start()
        active_total = len(self.active_files)
        self._log("info", f"Starting translation: {active_total} files, {self.progress.total_items} strings")

        try:
            for record in self.files:
                if self.token.is_cancelled:
                    break
                if not record.items:
                    self._set_file(record, status=FileStatus.SKIP)
                    continue

                self._log("info", f"[{self.progress.completed_files + 1}/{active_total}] "
                                  f"{record.base_name}: {len(record.items)} strings")
                await self._translate_file(record)
        finally:
            if self._owns_translator:
                await self.translator.close()

        if self.token.is_cancelled:
            self._log("warning", f"Stopped by user. {self.progress.completed_files} files ready")
        else:
            self._log("success", f"Translation completed! {self.progress.completed_files} files ready")
        self._set_stage(PipelineStage.DONE)
        self._publish_progress()
        return self.files

    async def _translate_file(self, record: FileRecord):
        self._set_file(record, status=FileStatus.TRANSLATING, progress=0)

        total = len(record.items)
        translations: List[Optional[str]] = []
        file_done = 0

        for start in range(0, total, self.batch_size):
            if start > 0 and self.inter_batch_delay > 0:
                await self._sleep(self.inter_batch_delay)
            # Checked after the delay so a stop during it sends nothing
            if self.token.is_cancelled:
                break

            batch = [item.text for item in record.items[start:start + self.batch_size]]
            results = await self.batch_translator.translate(batch, self.translator, self.token)
            translations.extend(results)

            file_done += len(batch)
            self.progress.add_items(len(batch))
            self._set_file(record, progress=round(file_done / total * 100))
            self._publish_progress()

        # Batches never sent keep their original text
        translations.extend([None] * (total - len(translations)))

        if self.validate_codes:
            translations = Validator.filter_translations([i.text for i in record.items], translations)

        patcher = Patcher()
        new_document = patcher.apply(record.document, record.items, translations, name=record.name)
        if not Validator.validate_json_structure(record.document, new_document):
            self._log("error", f"Structure check failed for {record.base_name}, keeping original")
            new_document = record.document

        applied = patcher.applied_count
        self.progress.complete_file()
        self._set_file(record, status=FileStatus.DONE, progress=100, translated_document=new_document)
        self._publish_progress()
        self._log("success", f"   {record.base_name}: done ({applied}/{total} translated)")

    # --- Output ---

    def outputs(self) -> List[Tuple[str, str]]:
        """(entry name, serialized JSON) for every finished file."""
        return [
            (f.name, serialize_document(f.output_document))
            for f in self.files
            if f.status is FileStatus.DONE
        ]
