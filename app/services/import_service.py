# app/services/import_service.py
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from fastapi import UploadFile
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import EscalationError, ImportFileError
from app.schemas.auth import Principal
from app.schemas.escalation import ImportResult, RowFailure
from app.services.escalation_service import EscalationService, clean_escalation
from app.utils.branches import BRANCH_ALIASES, BRANCHES
from app.utils.dates import cell_to_text, format_cell_date
from app.utils.header_aliases import HEADER_ALIASES, build_column_map
from app.utils.tabular_reader import read_rows

logger = logging.getLogger(__name__)

NO_VALID_RECORDS = "No valid records found for import"


@dataclass
class NormalizedImport:
    total_rows: int
    accepted: List[Dict] = field(default_factory=list)
    rejected: int = 0


def _coerce_cell(field_name: str, value) -> str:
    if field_name == "date":
        return format_cell_date(value)
    # aging stays text here; clean_escalation parses it
    return cell_to_text(value)


class ImportService:
    """
    Turns an uploaded CSV / xlsx sheet into escalation records.

    Bad rows are dropped and counted, never fatal. Only a file that can't be
    read (or has no data rows under its header) aborts the import.
    """

    def __init__(
        self,
        db: Optional[Session] = None,
        store: Optional[EscalationService] = None,
        header_aliases: Mapping[str, str] = HEADER_ALIASES,
        branches: Sequence[str] = BRANCHES,
        branch_aliases: Mapping[str, str] = BRANCH_ALIASES,
    ):
        self.store = store if store is not None else EscalationService(db)
        self.header_aliases = header_aliases
        self.branches = branches
        self.branch_aliases = branch_aliases

    def normalize_rows(self, rows: Sequence[Sequence], principal: Principal) -> NormalizedImport:
        if len(rows) < 2:
            raise ImportFileError("File empty or invalid format")

        col_map = build_column_map(rows[0], self.header_aliases)
        logger.debug("Column map: %s", col_map)

        result = NormalizedImport(total_rows=len(rows) - 1)
        for line_no, row in enumerate(rows[1:], start=2):
            candidate = {}
            has_data = False
            for field_name, idx in col_map.items():
                value = row[idx] if idx < len(row) else None
                candidate[field_name] = _coerce_cell(field_name, value)
                if candidate[field_name]:
                    has_data = True

            if not has_data:
                logger.debug("Row %d rejected: no mapped data", line_no)
                result.rejected += 1
                continue
            try:
                entry = clean_escalation(candidate, principal, self.branches, self.branch_aliases)
            except EscalationError as e:
                logger.debug("Row %d rejected: %s", line_no, e.message)
                result.rejected += 1
                continue
            result.accepted.append(entry)
        return result

    def import_rows(self, rows: Sequence[Sequence], principal: Principal) -> ImportResult:
        normalized = self.normalize_rows(rows, principal)
        accepted = len(normalized.accepted)
        if not accepted:
            logger.info("Import by %s: %s (%d rows rejected)", principal.role, NO_VALID_RECORDS, normalized.rejected)
            return ImportResult(
                total_rows=normalized.total_rows,
                accepted=0,
                rejected=normalized.rejected,
                message=NO_VALID_RECORDS,
            )

        bulk = self.store.insert_many(normalized.accepted, principal)
        inserted, failed = len(bulk.inserted), len(bulk.failed)
        message = f"Successfully imported {inserted} records"
        if failed:
            message += f", {failed} failed to save"
        logger.info(
            "Import by %s: %d rows, %d accepted, %d rejected, %d saved, %d failed",
            principal.role, normalized.total_rows, accepted, normalized.rejected, inserted, failed,
        )
        return ImportResult(
            total_rows=normalized.total_rows,
            accepted=accepted,
            rejected=normalized.rejected,
            inserted=inserted,
            failed=failed,
            errors=[RowFailure(**f) for f in bulk.failed],
            message=message,
        )

    def import_file(
        self,
        data: bytes,
        principal: Principal,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ImportResult:
        rows = read_rows(data, filename, content_type)
        return self.import_rows(rows, principal)

    async def handle_upload(self, uploaded_file: UploadFile, principal: Principal) -> ImportResult:
        # -------------------
        # Validation
        # -------------------
        content_type = uploaded_file.content_type
        data = await uploaded_file.read()
        size = len(data)

        if size == 0:
            raise ImportFileError("Empty file")

        if size > settings.MAX_UPLOAD_SIZE_BYTES:
            raise ImportFileError("File too large")

        if settings.ALLOWED_UPLOAD_TYPES and content_type and content_type not in settings.ALLOWED_UPLOAD_TYPES:
            raise ImportFileError(f"Unsupported file type: {content_type}")

        return self.import_file(data, principal, uploaded_file.filename, content_type)
