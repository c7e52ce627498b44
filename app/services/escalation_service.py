# app/services/escalation_service.py
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    BranchNotPermitted,
    EscalationError,
    EscalationValidationError,
    StorageError,
)
from app.models.escalation import Escalation
from app.schemas.auth import Principal
from app.utils.branches import BRANCH_ALIASES, BRANCHES, canonicalize_branch, same_branch
from app.utils.dates import cell_to_text, parse_aging

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("date", "case_id", "branch", "brand", "service_type", "reason", "city", "status", "remark")
REQUIRED_FIELDS = ("date", "case_id", "branch")
DEFAULT_STATUS = "Open"


def clean_escalation(
    data,
    principal: Optional[Principal] = None,
    branches: Sequence[str] = BRANCHES,
    aliases: Mapping[str, str] = BRANCH_ALIASES,
) -> Dict:
    """
    Validate one candidate record and return the values to store.

    Shared by form submissions, JSON bulk inserts and file imports so all
    three apply the same rules: required fields present, branch resolved to
    its canonical name, and a branch user only writing its own branch.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, Mapping):
        raise EscalationValidationError("Record must be an object")
    values = {f: cell_to_text(data.get(f)) for f in TEXT_FIELDS}
    values["aging"] = parse_aging(data.get("aging"))
    if not values["status"]:
        values["status"] = DEFAULT_STATUS

    missing = [f for f in REQUIRED_FIELDS if not values[f]]
    if missing:
        raise EscalationValidationError(f"Missing required field(s): {', '.join(missing)}")

    branch = canonicalize_branch(values["branch"], branches, aliases)
    if branch is None:
        raise EscalationValidationError(f"Unknown branch: {values['branch']}")
    values["branch"] = branch

    if principal is not None and not principal.is_admin and not same_branch(branch, principal.role):
        raise BranchNotPermitted(f"{principal.role} can't write records for {branch}")
    return values


@dataclass
class BulkInsertResult:
    inserted: List[Escalation] = field(default_factory=list)
    # {"index": position in the submitted list, "message": why it failed}
    failed: List[Dict] = field(default_factory=list)


class EscalationService:
    def __init__(self, db: Session):
        self.db = db

    def find_all(self) -> List[Escalation]:
        return (
            self.db.query(Escalation)
            .order_by(Escalation.created_at.desc(), Escalation.id.desc())
            .all()
        )

    def get(self, escalation_id: int) -> Optional[Escalation]:
        return self.db.query(Escalation).filter(Escalation.id == escalation_id).first()

    def insert_one(self, payload, principal: Optional[Principal] = None) -> Escalation:
        values = clean_escalation(payload, principal)
        obj = Escalation(**values)
        self.db.add(obj)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning("Insert failed for case %s: %s", values["case_id"], e)
            raise StorageError(str(getattr(e, "orig", None) or e))
        self.db.refresh(obj)
        return obj

    def insert_many(self, rows: Sequence, principal: Optional[Principal] = None) -> BulkInsertResult:
        """
        Insert rows one by one, keeping going past failures.

        Each row gets its own savepoint, so a bad row only loses itself. This
        is not atomic: whatever made it in stays in.
        """
        result = BulkInsertResult()
        for index, row in enumerate(rows):
            try:
                values = clean_escalation(row, principal)
            except EscalationError as e:
                result.failed.append({"index": index, "message": e.message})
                continue
            obj = Escalation(**values)
            try:
                with self.db.begin_nested():
                    self.db.add(obj)
                    self.db.flush()
            except SQLAlchemyError as e:
                logger.warning("Bulk insert row %d failed: %s", index, e)
                result.failed.append({"index": index, "message": str(getattr(e, "orig", None) or e)})
                continue
            result.inserted.append(obj)
        self.db.commit()
        logger.info("Bulk insert: %d inserted, %d failed", len(result.inserted), len(result.failed))
        return result

    def update_by_id(self, escalation_id: int, payload, principal: Optional[Principal] = None) -> Optional[Escalation]:
        obj = self.get(escalation_id)
        if obj is None:
            return None
        if principal is not None and not principal.is_admin and not same_branch(obj.branch, principal.role):
            raise BranchNotPermitted(f"{principal.role} can't edit records for {obj.branch}")
        values = clean_escalation(payload, principal)
        for key, value in values.items():
            setattr(obj, key, value)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(str(getattr(e, "orig", None) or e))
        self.db.refresh(obj)
        return obj

    def delete_by_id(self, escalation_id: int, principal: Optional[Principal] = None) -> bool:
        obj = self.get(escalation_id)
        if obj is None:
            return False
        if principal is not None and not principal.is_admin and not same_branch(obj.branch, principal.role):
            raise BranchNotPermitted(f"{principal.role} can't delete records for {obj.branch}")
        self.db.delete(obj)
        self.db.commit()
        return True

    def delete_all(self) -> int:
        count = self.db.query(Escalation).delete()
        self.db.commit()
        logger.warning("Deleted all %d escalations", count)
        return count
