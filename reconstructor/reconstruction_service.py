# reconstructor/reconstruction_service.py

import logging
import threading
from dataclasses import replace
from typing import Any, List, Optional, Tuple

from reconstructor.base_utils import BaseUtils
from reconstructor.entities import (
    ZERO_STATS,
    FileRole,
    ReconstructionLogEntry,
    RunPhase,
    RunState,
    Severity,
    SourceFile,
    StatusKind,
)
from reconstructor.errors import (
    InputMissingError,
    ReadError,
    RemoteCallError,
    RunInProgressError,
)
from reconstructor.file_loader import describe_source, read_file_content
from reconstructor.prompt_builder import ReconstructionPromptBuilder
from reconstructor.reconstruction_log import ReconstructionLog
from reconstructor.response_validator import TRUNCATION_HINT, ResponseValidator
from reconstructor.rule_index import prepare_index_content
from reconstructor.settings import DOWNLOAD_FILENAME, GenerationSettings, load_generation_settings

logger = logging.getLogger("evoki_reconstructor")

MSG_MAIN_FILE_MISSING = "Bitte laden Sie die Haupt-Chatverlauf-Datei hoch."
MSG_STARTING = "Starte semantische Rekonstruktion..."
MSG_DONE = "Semantische Rekonstruktion abgeschlossen! ✓"
MSG_DONE_UNPARSED = "Rekonstruktion abgeschlossen, aber die KI-Antwort ist kein gültiges JSON. Rohdaten werden angezeigt."


class ReconstructionService(BaseUtils):
    """
    Runs one reconstruction at a time:
        loading -> filtering -> prompting -> calling -> validating -> done | error

    The state is an immutable RunState snapshot replaced at every transition.
    A second start while a run is in flight is rejected with RunInProgressError.
    """

    def __init__(
        self,
        llm_client: Any = None,
        *,
        settings: Optional[GenerationSettings] = None,
        log: Optional[ReconstructionLog] = None,
    ):
        self._llm = llm_client
        self._settings = settings
        self.log = log or ReconstructionLog()
        self.prompt_builder = ReconstructionPromptBuilder()
        self.validator = ResponseValidator()
        self._run_lock = threading.Lock()
        self._state = RunState()
        self._result_data: Any = None

    # -----------------------
    # State
    # -----------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def result_data(self) -> Any:
        return self._result_data

    def log_entries(self) -> List[ReconstructionLogEntry]:
        return self.log.snapshot()

    def _advance(self, **changes) -> RunState:
        self._state = replace(self._state, **changes)
        return self._state

    def _get_llm(self):
        if self._llm is None:
            from reconstructor.llm_client import LlmClient

            try:
                self._llm = LlmClient(self._settings or load_generation_settings())
            except Exception as e:
                raise RemoteCallError(f"KI-Client konnte nicht initialisiert werden: {e}") from e
        return self._llm

    # -----------------------
    # Run
    # -----------------------

    async def start_reconstruction(
        self,
        main: Any,
        skeleton: Any = None,
        dense: Any = None,
        index: Any = None,
        only_accepted: bool = False,
    ) -> RunState:
        if main is None:
            # a run in flight owns the status line
            if not self._run_lock.locked():
                self._advance(status_message=MSG_MAIN_FILE_MISSING, status_kind=StatusKind.ERROR)
            raise InputMissingError(MSG_MAIN_FILE_MISSING)

        if not self._run_lock.acquire(blocking=False):
            raise RunInProgressError("Eine Rekonstruktion läuft bereits.")
        try:
            return await self._run(main, skeleton, dense, index, only_accepted)
        finally:
            self._run_lock.release()

    async def _read(self, role: FileRole, source: Any, files: List[SourceFile]) -> Optional[str]:
        if source is None:
            return None
        content = await read_file_content(source)
        files.append(describe_source(role, source, content))
        return content

    async def _run(self, main, skeleton, dense, index, only_accepted: bool) -> RunState:
        self.log.clear()
        self._result_data = None
        self._advance(
            phase=RunPhase.LOADING,
            progress=0,
            status_message=MSG_STARTING,
            status_kind=StatusKind.INFO,
            stats=ZERO_STATS,
            result_text="",
            parse_failed=False,
            files=(),
        )

        try:
            self.log.add("Lade Dateiinhalte...")
            self._advance(progress=10)

            files: List[SourceFile] = []
            main_content = await self._read(FileRole.MAIN, main, files)
            skeleton_content = await self._read(FileRole.SKELETON, skeleton, files)
            dense_content = await self._read(FileRole.DENSE, dense, files)
            index_content = await self._read(FileRole.INDEX, index, files)
            self._advance(files=tuple(files))

            if index_content is not None:
                if only_accepted:
                    self._advance(phase=RunPhase.FILTERING, progress=20)
                    self.log.add("Filtere Regel-Index auf akzeptierte Regeln...")
                index_content = prepare_index_content(index_content, only_accepted, log=self.log.add)

            self.log.add("Analysiere Regelwerk-Struktur...")
            self._advance(phase=RunPhase.PROMPTING, progress=30)
            prompt = self.prompt_builder.build(
                main_content,
                skeleton=skeleton_content,
                dense=dense_content,
                index=index_content,
            )

            self.log.add("Generiere rekonstruierte Daten mit KI...")
            self._advance(phase=RunPhase.CALLING, progress=50)
            llm = self._get_llm()
            raw = await llm.ainvoke(prompt, log=lambda msg: self.log.add(msg, Severity.WARNING))

            self.log.add("Verarbeite KI-Antwort...")
            self._advance(phase=RunPhase.VALIDATING, progress=80)
            result = self.validator.validate(raw)

            if result.ok:
                self._result_data = result.data
                self.log.add(
                    f"Erfolg: {result.stats.total_rules} Regeln in {result.stats.versions_processed} Versionen rekonstruiert.",
                    Severity.SUCCESS,
                )
                return self._advance(
                    phase=RunPhase.DONE,
                    progress=100,
                    status_message=MSG_DONE,
                    status_kind=StatusKind.SUCCESS,
                    stats=result.stats,
                    result_text=result.display_text,
                )

            self.log.add(
                f"KI-Daten konnten nicht als JSON geparst werden: {result.error}. {TRUNCATION_HINT}",
                Severity.ERROR,
            )
            return self._advance(
                phase=RunPhase.DONE,
                progress=100,
                status_message=MSG_DONE_UNPARSED,
                status_kind=StatusKind.ERROR,
                stats=ZERO_STATS,
                result_text=result.display_text,
                parse_failed=True,
            )

        except (ReadError, RemoteCallError) as e:
            self.log.add(f"Fehler bei der Rekonstruktion: {e}", Severity.ERROR)
            return self._advance(
                phase=RunPhase.ERROR,
                status_message=f"Fehler: {e}",
                status_kind=StatusKind.ERROR,
            )
        except Exception as e:
            logger.exception("Unexpected failure during reconstruction")
            self.log.add(f"Fehler bei der Rekonstruktion: {e}", Severity.ERROR)
            self._advance(
                phase=RunPhase.ERROR,
                status_message=f"Fehler: {e}",
                status_kind=StatusKind.ERROR,
            )
            raise

    # -----------------------
    # Artifacts
    # -----------------------

    def result_document(self) -> Tuple[str, str]:
        """
        (content, filename) for the download: the pretty-printed JSON, or the raw text when it did not parse.
        """
        if not self._state.has_result:
            raise LookupError(f"Keine Daten zum Herunterladen für {DOWNLOAD_FILENAME}.")
        return self._state.result_text, DOWNLOAD_FILENAME
