import datetime
import logging
from typing import Any, Dict, List

from bson import ObjectId
from bson.errors import InvalidId

from app.core.database import mongodb
from app.models.schemas import DiagnosisLog, FarmRecords, PredictionLog

logger = logging.getLogger(__name__)

# FarmRecords field -> collection
RECORD_COLLECTIONS = {
    "harvests": "harvests",
    "collector_payments": "collector_payment_logs",
    "packaging_logs": "packaging_logs",
    "cultural_practice_logs": "cultural_practice_logs",
    "agronomist_logs": "agronomist_logs",
    "phenology_logs": "phenology_logs",
    "supplies": "supplies",
    "transactions": "transactions",
    "batches": "batches",
}
PREDICTION_LOGS = "prediction_logs"
DIAGNOSIS_LOGS = "diagnosis_logs"


async def save_to_mongodb(collection_name: str, data: Dict[str, Any]) -> str:
    db = mongodb.get_database()
    collection = db[collection_name]

    document = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc),
        "data": data
    }

    result = await collection.insert_one(document)
    return str(result.inserted_id)


def _document_to_record(document: Dict[str, Any]) -> Dict[str, Any]:
    record = dict(document.get("data") or {})
    record["id"] = str(document["_id"])
    return record


def _object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValueError(f"Invalid id format: {value}") from e


async def load_farm_records() -> FarmRecords:
    """Snapshot every record collection into a FarmRecords."""
    db = mongodb.get_database()
    snapshot = {}
    for field, collection_name in RECORD_COLLECTIONS.items():
        documents = await db[collection_name].find({}).to_list(length=None)
        snapshot[field] = [_document_to_record(doc) for doc in documents]

    records = FarmRecords.model_validate(snapshot)
    logger.info(
        f"Loaded farm records: {len(records.harvests)} harvests, "
        f"{len(records.agronomist_logs)} agronomist logs, {len(records.phenology_logs)} phenology logs"
    )
    return records


async def save_prediction_log(log: PredictionLog) -> str:
    return await save_to_mongodb(PREDICTION_LOGS, log.model_dump(mode="json", exclude={"id"}))


async def save_diagnosis_log(log: DiagnosisLog) -> str:
    data = log.model_dump(mode="json", by_alias=True, exclude={"id"})
    return await save_to_mongodb(DIAGNOSIS_LOGS, data)


async def _latest_documents(collection_name: str, limit: int) -> List[Dict[str, Any]]:
    db = mongodb.get_database()
    # ISO-8601 UTC strings sort chronologically
    cursor = db[collection_name].find({}).sort([("data.date", -1), ("timestamp", -1)])
    return await cursor.to_list(length=limit)


async def list_prediction_logs(limit: int = 50) -> List[PredictionLog]:
    documents = await _latest_documents(PREDICTION_LOGS, limit)
    return [PredictionLog.model_validate(_document_to_record(doc)) for doc in documents]


async def list_diagnosis_logs(limit: int = 50) -> List[DiagnosisLog]:
    documents = await _latest_documents(DIAGNOSIS_LOGS, limit)
    return [DiagnosisLog.model_validate(_document_to_record(doc)) for doc in documents]


async def delete_harvest(harvest_id: str) -> Dict[str, int]:
    """
    Delete a harvest together with the collector payment logs that reference it.

    Returns the number of deleted documents per collection; a harvest count of
    0 means the harvest did not exist and nothing was deleted.
    """
    db = mongodb.get_database()
    object_id = _object_id(harvest_id)

    harvest = await db[RECORD_COLLECTIONS["harvests"]].find_one({"_id": object_id})
    if not harvest:
        return {"harvests": 0, "collector_payment_logs": 0}

    # Harvest before its payments; an interrupted delete can only leave orphaned payments
    harvests = await db[RECORD_COLLECTIONS["harvests"]].delete_one({"_id": object_id})
    payments = await db[RECORD_COLLECTIONS["collector_payments"]].delete_many({"data.harvest_id": harvest_id})

    logger.info(
        f"Deleted harvest {harvest_id} and {payments.deleted_count} collector payment log(s)"
    )
    return {
        "harvests": harvests.deleted_count,
        "collector_payment_logs": payments.deleted_count,
    }
