"""Pydantic schemas consolidating the registry API contracts."""

# purpose: aggregate request and response schemas for FastAPI routes and services
# status: active

from .issuance import (
    BCUCreate,
    BCUOut,
    BCURetireRequest,
    BCUTransferRequest,
    BCUUpdate,
    CORCCreate,
    CORCIssueRequest,
    CORCOut,
    CORCRetireRequest,
    CORCUpdate,
    IssuanceEventOut,
)
from .monitoring import (
    CalculateRequest,
    CalculateResponse,
    CalculationResultOut,
    EmissionBreakdownOut,
    MonitoringPeriodCreate,
    MonitoringPeriodOut,
    MonitoringPeriodUpdate,
    RecalculationJobOut,
    ValidationOut,
)
from .supply_chain import (
    EnergyUsageCreate,
    EnergyUsageOut,
    FacilityCreate,
    FacilityOut,
    FeedstockAllocationCreate,
    FeedstockAllocationOut,
    FeedstockDeliveryCreate,
    FeedstockDeliveryOut,
    IlucEstimateOut,
    IlucEstimateRequest,
    LabTestCreate,
    LabTestOut,
    LabTestUpdate,
    LeakageAssessmentCreate,
    LeakageAssessmentOut,
    LeakageRiskOut,
    LeakageRiskRequest,
    ProductionBatchCreate,
    ProductionBatchOut,
    ProductionBatchUpdate,
    SequestrationBatchLink,
    SequestrationEventCreate,
    SequestrationEventOut,
)
