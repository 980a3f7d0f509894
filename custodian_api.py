#!/usr/bin/env python3
"""
Custodian FastAPI Service

This FastAPI service exposes the research-data governance registries as REST
endpoints. The caller principal is resolved from the X-Caller-Principal header
(or an Authorization Bearer token) before any registry call is made.
"""

from fastapi import FastAPI, HTTPException, Depends, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Any, Optional
import logging
from datetime import datetime

from custodian import Custodian, RegistryError, NotAuthorized, NotOwner, AlreadyVerified, NotFound
from custodian.config.settings import get_settings
from custodian.governance import REGISTRY_NAMES
from custodian.models import MAX_SQLITE_INT
from custodian.utils.hashing import parse_hex_hash

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Custodian API",
    description="Research-data governance: institutions, dataset access and provenance",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Global Custodian instance
custodian_instance: Optional[Custodian] = None


ERROR_STATUS = {
    NotAuthorized: 403,
    NotOwner: 403,
    AlreadyVerified: 409,
    NotFound: 404,
}

CATEGORY_REGISTRIES = {
    "usage-types": "usage_types",
    "anonymization-methods": "anonymization_methods",
}


# Pydantic models for request/response validation
class VerifyInstitutionRequest(BaseModel):
    identity: str = Field(..., description="Principal of the institution")
    name: str = Field(..., description="Display name of the institution")
    level: int = Field(..., ge=0, le=MAX_SQLITE_INT, description="Verification level")

    class Config:
        json_schema_extra = {
            "example": {
                "identity": "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG",
                "name": "Test Institution",
                "level": 2
            }
        }


class RegisterDatasetRequest(BaseModel):
    dataset_id: int = Field(..., ge=0, le=MAX_SQLITE_INT, description="Caller-coordinated dataset id")


class GrantAccessRequest(BaseModel):
    accessor: str = Field(..., description="Principal receiving access")
    access_level: int = Field(..., ge=0, le=MAX_SQLITE_INT, description="Level of access")
    expiration: int = Field(..., ge=0, le=MAX_SQLITE_INT, description="Logical time at which access ends")

    class Config:
        json_schema_extra = {
            "example": {
                "accessor": "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG",
                "access_level": 2,
                "expiration": 1000
            }
        }


class TransferRequest(BaseModel):
    new_owner: str = Field(..., description="Principal that becomes the owner")


class TransferAdminRequest(BaseModel):
    new_admin: str = Field(..., description="Principal that becomes the admin")


class RegisterCategoryRequest(BaseModel):
    category_id: int = Field(..., ge=0, le=MAX_SQLITE_INT)
    name: str
    description: str = ""


class RecordUsageRequest(BaseModel):
    dataset_id: int = Field(..., ge=0, le=MAX_SQLITE_INT)
    usage_type: int = Field(..., ge=0, le=MAX_SQLITE_INT)
    details: str = ""


class RegisterAnonymizedRequest(BaseModel):
    original_hash: str = Field(..., description="Hex-encoded 32-byte hash of the source dataset")
    anonymized_hash: str = Field(..., description="Hex-encoded 32-byte hash of the anonymized dataset")
    method_id: int = Field(..., ge=0, le=MAX_SQLITE_INT)


class VerifyAnonymizationRequest(BaseModel):
    claimed_hash: str = Field(..., description="Hex-encoded hash to check")


class ApiResponse(BaseModel):
    success: bool = True
    data: Optional[Any] = None


def _payload(value: Any) -> ApiResponse:
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return ApiResponse(success=True, data=value)


# Dependency to get the caller principal from headers
async def get_caller(
    x_caller_principal: Optional[str] = Header(None, alias="X-Caller-Principal"),
    authorization: Optional[str] = Header(None)
) -> str:
    """Extract the caller principal from headers"""

    if x_caller_principal:
        return x_caller_principal

    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]  # Remove "Bearer " prefix

    raise HTTPException(
        status_code=401,
        detail="Missing caller principal. Provide X-Caller-Principal header or Authorization Bearer token."
    )


async def get_custodian() -> Custodian:
    if custodian_instance is None:
        raise HTTPException(status_code=503, detail="Custodian is not initialized")
    return custodian_instance


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize Custodian on startup unless an instance was injected"""
    global custodian_instance
    if custodian_instance is None:
        settings = get_settings()
        logging.basicConfig(level=settings.log_level)
        custodian_instance = Custodian.create(settings.require_admin(), settings)
    logger.info("Custodian API service started successfully")


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


@app.get("/api/v1/clock", response_model=ApiResponse, tags=["Health"])
async def current_time(custodian: Custodian = Depends(get_custodian)):
    """Current logical time used for timestamps and expiration checks"""
    return _payload(custodian.clock.now())


# Institution verification
@app.post("/api/v1/institutions", response_model=ApiResponse, tags=["Institutions"])
async def verify_institution(request: VerifyInstitutionRequest,
                             caller: str = Depends(get_caller),
                             custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.verify_institution(caller, request.identity, request.name, request.level))


@app.delete("/api/v1/institutions/{identity}", response_model=ApiResponse, tags=["Institutions"])
async def revoke_verification(identity: str,
                              caller: str = Depends(get_caller),
                              custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.revoke_verification(caller, identity))


@app.get("/api/v1/institutions/{identity}", response_model=ApiResponse, tags=["Institutions"])
async def get_institution(identity: str, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.get_institution_details(identity))


@app.get("/api/v1/institutions/{identity}/verified", response_model=ApiResponse, tags=["Institutions"])
async def is_verified(identity: str, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.is_verified(identity))


# Dataset ownership and access control
@app.post("/api/v1/datasets", response_model=ApiResponse, tags=["Datasets"])
async def register_dataset(request: RegisterDatasetRequest,
                           caller: str = Depends(get_caller),
                           custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.register_dataset(caller, request.dataset_id))


@app.get("/api/v1/datasets/{dataset_id}", response_model=ApiResponse, tags=["Datasets"])
async def get_dataset(dataset_id: int, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.get_dataset(dataset_id))


@app.get("/api/v1/datasets/{dataset_id}/owner", response_model=ApiResponse, tags=["Datasets"])
async def is_dataset_owner(dataset_id: int,
                           caller: str = Depends(get_caller),
                           custodian: Custodian = Depends(get_custodian)):
    """Whether the calling principal owns the dataset"""
    return _payload(await custodian.is_dataset_owner(caller, dataset_id))


@app.post("/api/v1/datasets/{dataset_id}/transfer", response_model=ApiResponse, tags=["Datasets"])
async def transfer_dataset_ownership(dataset_id: int, request: TransferRequest,
                                     caller: str = Depends(get_caller),
                                     custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.transfer_dataset_ownership(caller, dataset_id, request.new_owner))


@app.post("/api/v1/datasets/{dataset_id}/grants", response_model=ApiResponse, tags=["Access"])
async def grant_access(dataset_id: int, request: GrantAccessRequest,
                       caller: str = Depends(get_caller),
                       custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.grant_access(
        caller, dataset_id, request.accessor, request.access_level, request.expiration
    ))


@app.delete("/api/v1/datasets/{dataset_id}/grants/{accessor}", response_model=ApiResponse, tags=["Access"])
async def revoke_access(dataset_id: int, accessor: str,
                        caller: str = Depends(get_caller),
                        custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.revoke_access(caller, dataset_id, accessor))


@app.get("/api/v1/datasets/{dataset_id}/grants/{accessor}", response_model=ApiResponse, tags=["Access"])
async def get_access_details(dataset_id: int, accessor: str, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.get_access_details(dataset_id, accessor))


@app.get("/api/v1/datasets/{dataset_id}/access/{accessor}", response_model=ApiResponse, tags=["Access"])
async def has_access(dataset_id: int, accessor: str, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.has_access(dataset_id, accessor))


@app.get("/api/v1/datasets/{dataset_id}/usage/{record_id}", response_model=ApiResponse, tags=["Provenance"])
async def get_dataset_usage(dataset_id: int, record_id: int, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.get_dataset_usage(dataset_id, record_id))


# Usage types and anonymization methods
def _category_registry(custodian: Custodian, kind: str):
    if kind not in CATEGORY_REGISTRIES:
        raise HTTPException(status_code=404, detail=f"Unknown category registry: {kind}")
    return custodian.registry(CATEGORY_REGISTRIES[kind])


@app.post("/api/v1/categories/{kind}", response_model=ApiResponse, tags=["Categories"])
async def register_category(kind: str, request: RegisterCategoryRequest,
                            caller: str = Depends(get_caller),
                            custodian: Custodian = Depends(get_custodian)):
    registry = _category_registry(custodian, kind)
    return _payload(await registry.register(caller, request.category_id, request.name, request.description))


@app.delete("/api/v1/categories/{kind}/{category_id}", response_model=ApiResponse, tags=["Categories"])
async def deactivate_category(kind: str, category_id: int,
                              caller: str = Depends(get_caller),
                              custodian: Custodian = Depends(get_custodian)):
    registry = _category_registry(custodian, kind)
    return _payload(await registry.deactivate(caller, category_id))


@app.get("/api/v1/categories/{kind}/{category_id}", response_model=ApiResponse, tags=["Categories"])
async def get_category(kind: str, category_id: int, custodian: Custodian = Depends(get_custodian)):
    registry = _category_registry(custodian, kind)
    return _payload(await registry.get(category_id))


# Provenance
@app.post("/api/v1/usage", response_model=ApiResponse, tags=["Provenance"])
async def record_usage(request: RecordUsageRequest,
                       caller: str = Depends(get_caller),
                       custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.record_usage(caller, request.dataset_id, request.usage_type, request.details))


@app.get("/api/v1/usage/{record_id}", response_model=ApiResponse, tags=["Provenance"])
async def get_usage_record(record_id: int, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.get_usage_record(record_id))


@app.post("/api/v1/anonymized-datasets", response_model=ApiResponse, tags=["Provenance"])
async def register_anonymized_dataset(request: RegisterAnonymizedRequest,
                                      caller: str = Depends(get_caller),
                                      custodian: Custodian = Depends(get_custodian)):
    original_hash = parse_hex_hash(request.original_hash, "original_hash")
    anonymized_hash = parse_hex_hash(request.anonymized_hash, "anonymized_hash")
    return _payload(await custodian.register_anonymized_dataset(
        caller, original_hash, anonymized_hash, request.method_id
    ))


@app.get("/api/v1/anonymized-datasets/{record_id}", response_model=ApiResponse, tags=["Provenance"])
async def get_anonymized_dataset(record_id: int, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.get_anonymized_dataset(record_id))


@app.post("/api/v1/anonymized-datasets/{record_id}/verify", response_model=ApiResponse, tags=["Provenance"])
async def verify_anonymization(record_id: int, request: VerifyAnonymizationRequest,
                               custodian: Custodian = Depends(get_custodian)):
    try:
        claimed_hash = bytes.fromhex(request.claimed_hash)
    except ValueError:
        raise HTTPException(status_code=422, detail="claimed_hash must be a hex string")
    return _payload(await custodian.verify_anonymization(record_id, claimed_hash))


# Administration
def _named_registry(registry: str) -> str:
    if registry not in REGISTRY_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown registry: {registry}")
    return registry


@app.get("/api/v1/admin/{registry}", response_model=ApiResponse, tags=["Admin"])
async def get_admin(registry: str, custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.get_admin(_named_registry(registry)))


@app.post("/api/v1/admin/{registry}/transfer", response_model=ApiResponse, tags=["Admin"])
async def transfer_admin(registry: str, request: TransferAdminRequest,
                         caller: str = Depends(get_caller),
                         custodian: Custodian = Depends(get_custodian)):
    return _payload(await custodian.transfer_admin(caller, _named_registry(registry), request.new_admin))


# Error handlers
@app.exception_handler(RegistryError)
async def registry_error_handler(request, exc: RegistryError):
    """Map registry errors to HTTP statuses, keeping the registry code"""
    status_code = next(
        (status for error, status in ERROR_STATUS.items() if isinstance(exc, error)), 400
    )
    return JSONResponse(
        status_code=status_code,
        content={"success": False, **exc.to_dict()}
    )


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": str(exc)}
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """General exception handler"""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "custodian_api:app",
        host="0.0.0.0",
        port=8001,
        log_level="info"
    )
