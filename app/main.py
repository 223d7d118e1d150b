import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import LOG_LEVEL
from app.core.database import mongodb
from app.routers import costs, diagnosis, predictions, recommendations, records, reports

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="AgroVision API",
    description="Decision support for strawberry farm management",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def startup_event():
    await mongodb.connect()

@app.on_event("shutdown")
async def shutdown_event():
    await mongodb.disconnect()

app.include_router(predictions.router)
app.include_router(recommendations.router)
app.include_router(diagnosis.router)
app.include_router(costs.router)
app.include_router(reports.router)
app.include_router(records.router)

@app.get("/")
async def root():
    return {
        "message": "AgroVision API - Strawberry Farm Decision Support",
        "version": "1.0.0",
        "endpoints": {
            "predictions": "/predictions",
            "recommendations": "/recommendations",
            "diagnosis": "/diagnosis",
            "costs": "/costs",
            "reports": "/reports",
            "records": "/records"
        }
    }
