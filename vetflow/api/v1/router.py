"""API v1 router configuration."""

from fastapi import APIRouter

from vetflow.api.v1.endpoints import (
    appointments,
    audit_logs,
    auth,
    dashboard,
    health,
    medical_records,
    owners,
    patients,
    users,
    veterinarians,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(veterinarians.router, tags=["Veterinarians"])
api_router.include_router(owners.router, prefix="/owners", tags=["Owners"])
api_router.include_router(patients.router, prefix="/patients", tags=["Patients"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(
    medical_records.router, prefix="/medical-records", tags=["Medical Records"]
)
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["Audit"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
