"""
Qt bridge for the translation pipeline.
Moves a TranslationPipeline run onto a QThread and re-emits its events as
Qt signals for widgets to consume.
"""
import asyncio
import logging

from PyQt6.QtCore import QObject, pyqtSignal as Signal

from src.core.enums import FileStatus
from src.core.translation_pipeline import TranslationPipeline
from src.utils.archive import ArchiveError, GameArchive, write_translated_archive


class PipelineWorker(QObject):
    """
    Usage::

        thread = QThread()
        worker = PipelineWorker(settings, "Game.zip")
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
    """

    # Signals for UI updates
    stage_changed = Signal(str)              # stage value
    file_updated = Signal(str, str, int)     # name, status, progress%
    progress_updated = Signal(dict)          # ProgressSnapshot.to_dict()
    log_message = Signal(str, str)           # level, message
    finished = Signal(bool, str)             # success, message

    def __init__(self, settings: dict, archive_path: str, output_path: str = None,
                 pipeline: TranslationPipeline = None):
        super().__init__()
        self.settings = settings
        self.archive_path = archive_path
        self.output_path = output_path
        self.logger = logging.getLogger(self.__class__.__name__)
        self.pipeline = pipeline or TranslationPipeline(settings)
        self.pipeline.subscribe(self._forward)

    def _forward(self, event: str, payload):
        if event == "stage":
            self.stage_changed.emit(payload.value)
        elif event == "file":
            self.file_updated.emit(payload.name, payload.status.value, payload.progress)
        elif event == "progress":
            self.progress_updated.emit(payload.to_dict())
        elif event == "log":
            level, message = payload
            self.log_message.emit(level, message)

    def stop(self):
        """Request pipeline stop."""
        self.pipeline.stop()

    def run(self):
        """Qt Thread Entry"""
        try:
            with GameArchive(self.archive_path) as archive:
                self.pipeline.scan(archive)
            asyncio.run(self.pipeline.run())
            if self.output_path:
                write_translated_archive(self.archive_path, self.output_path, dict(self.pipeline.outputs()))
        except ArchiveError as e:
            self.logger.error(str(e))
            self.finished.emit(False, str(e))
            return
        except Exception as e:
            self.logger.exception("Pipeline Error")
            self.finished.emit(False, str(e))
            return

        done = sum(1 for f in self.pipeline.files if f.status is FileStatus.DONE)
        if self.pipeline.token.is_cancelled:
            self.finished.emit(True, f"Stopped by user. {done} files translated.")
        else:
            self.finished.emit(True, f"Translation completed! {done} files translated.")
