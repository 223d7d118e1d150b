"""
Confirm/correct step between a model diagnosis and the persisted diagnosis log.

A reconciliation starts Proposed and ends exactly once in Validated, Corrected
or Abandoned. Only Validated and Corrected produce a DiagnosisLog, which is
built at the transition and written at most once.
"""
import logging
from enum import Enum
from typing import Optional

from app.core.config import GENERAL_BATCH_ID
from app.core.exceptions import ReconciliationError
from app.models.schemas import DiagnosisLog, FlowContext, PlantDiagnosis
from app.services import database_service

logger = logging.getLogger(__name__)

OTHER_SELECTION = "Other"


class ReconciliationState(str, Enum):
    PROPOSED = "Proposed"
    VALIDATED = "Validated"
    CORRECTED = "Corrected"
    ABANDONED = "Abandoned"


class DiagnosisReconciliation:
    def __init__(self, result: PlantDiagnosis, batch_id: Optional[str] = None,
                 context: Optional[FlowContext] = None):
        self.result = result
        self.batch_id = batch_id or GENERAL_BATCH_ID
        self.context = context or FlowContext()
        self.state = ReconciliationState.PROPOSED
        self.log: Optional[DiagnosisLog] = None
        self.log_id: Optional[str] = None

    def _hypothesis_probability(self, name: str) -> Optional[float]:
        for hypothesis in self.result.posibles_diagnosticos:
            if hypothesis.nombre == name:
                return hypothesis.probabilidad
        return None

    def _ensure_proposed(self, action: str) -> None:
        if self.state != ReconciliationState.PROPOSED:
            raise ReconciliationError(f"Cannot {action} a diagnosis that is already {self.state.value}")

    def _build_log(self, final_diagnosis: str, probability: Optional[float],
                   user_correction: Optional[str] = None) -> DiagnosisLog:
        return DiagnosisLog(
            date=self.context.as_of,
            batch_id=self.batch_id,
            result=self.result.model_copy(deep=True),
            final_diagnosis=final_diagnosis,
            probability=probability,
            user_correction=user_correction,
            user_id=self.context.user_id,
        )

    def validate(self) -> DiagnosisLog:
        """Accept the model's primary diagnosis as final."""
        self._ensure_proposed("validate")
        primary = self.result.diagnostico_principal
        self.log = self._build_log(primary, self._hypothesis_probability(primary))
        self.state = ReconciliationState.VALIDATED
        logger.info(f"Diagnosis validated for batch {self.batch_id}: {primary}")
        return self.log

    def correct(self, selection: str, note: Optional[str] = None) -> DiagnosisLog:
        """
        Replace the primary diagnosis with one of the hypotheses, or with a
        free-text diagnosis when ``selection`` is "Other".
        """
        self._ensure_proposed("correct")

        note = (note or "").strip()
        names = [h.nombre for h in self.result.posibles_diagnosticos]
        if selection == OTHER_SELECTION:
            if not note:
                raise ReconciliationError("A note is required when correcting to 'Other'")
            final_diagnosis = note
            probability = None
        elif selection == self.result.diagnostico_principal:
            raise ReconciliationError(
                f"'{selection}' is already the primary diagnosis; use validate() to accept it"
            )
        elif selection in names:
            final_diagnosis = selection
            probability = self._hypothesis_probability(selection)
        else:
            raise ReconciliationError(
                f"Unknown selection '{selection}'; expected one of {names + [OTHER_SELECTION]}"
            )

        user_correction = f"Model diagnosis: {self.result.diagnostico_principal}. User note: {note or selection}"
        self.log = self._build_log(final_diagnosis, probability, user_correction)
        self.state = ReconciliationState.CORRECTED
        logger.info(
            f"Diagnosis corrected for batch {self.batch_id}: "
            f"{self.result.diagnostico_principal} -> {final_diagnosis}"
        )
        return self.log

    def abandon(self) -> None:
        self._ensure_proposed("abandon")
        self.state = ReconciliationState.ABANDONED
        logger.info(f"Diagnosis for batch {self.batch_id} abandoned; nothing persisted")

    async def save(self) -> str:
        """Write the diagnosis log; allowed once, after validate() or correct()."""
        if self.log is None:
            raise ReconciliationError(f"Nothing to save for a {self.state.value} diagnosis")
        if self.log_id is not None:
            raise ReconciliationError(f"Diagnosis log already saved as {self.log_id}")

        self.log_id = await database_service.save_diagnosis_log(self.log)
        self.log.id = self.log_id
        return self.log_id
