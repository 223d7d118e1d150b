import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query
from fastapi.concurrency import run_in_threadpool

from app.core.exceptions import DecisionFlowError
from app.models.schemas import (
    DiagnosisConfirmRequest,
    DiagnosisLog,
    DiagnosisLogResponse,
    FlowContext,
    PlantDiagnosis,
    PlantDiagnosisRequest,
)
from app.routers.errors import flow_http_exception
from app.services.context_builder import resolve_batch_id
from app.services.database_service import list_diagnosis_logs, load_farm_records
from app.services.diagnosis_reconciler import DiagnosisReconciliation
from app.services.flows import diagnose_plant

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/diagnosis", tags=["diagnosis"])


@router.post("", response_model=PlantDiagnosis)
async def create_diagnosis(request: PlantDiagnosisRequest):
    """
    Diagnose a plant from a photo and a description. The result is only a
    proposal; nothing is stored until it is confirmed or corrected.
    """
    try:
        return await run_in_threadpool(diagnose_plant, request.model_dump())
    except HTTPException:
        raise
    except DecisionFlowError as e:
        logger.warning(f"Plant diagnosis failed: {e}")
        raise flow_http_exception(e)
    except Exception as e:
        logger.error(f"Plant diagnosis error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Plant diagnosis failed: {str(e)}")


@router.post("/confirm", response_model=DiagnosisLogResponse)
async def confirm_diagnosis(request: DiagnosisConfirmRequest):
    """Validate or correct a proposed diagnosis and store it as a diagnosis log."""
    if request.action == "correct" and not request.selection:
        raise HTTPException(status_code=422, detail="selection is required to correct a diagnosis")

    try:
        records = await load_farm_records()
        reconciliation = DiagnosisReconciliation(
            request.result,
            batch_id=resolve_batch_id(request.batch_id, records),
            context=FlowContext(user_id=request.user_id),
        )

        if request.action == "validate":
            reconciliation.validate()
        else:
            reconciliation.correct(request.selection, request.note)

        log_id = await reconciliation.save()
        return DiagnosisLogResponse(id=log_id, state=reconciliation.state.value, log=reconciliation.log)
    except HTTPException:
        raise
    except DecisionFlowError as e:
        logger.warning(f"Diagnosis confirmation rejected: {e}")
        raise flow_http_exception(e)
    except Exception as e:
        logger.error(f"Diagnosis confirmation error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to save diagnosis: {str(e)}")


@router.get("/history", response_model=List[DiagnosisLog])
async def get_diagnosis_history(limit: int = Query(default=50, ge=1, le=500)):
    try:
        return await list_diagnosis_logs(limit)
    except Exception as e:
        logger.error(f"Error fetching diagnosis history: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to fetch diagnosis history: {str(e)}")
