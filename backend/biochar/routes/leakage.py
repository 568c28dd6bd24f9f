from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..methodology.leakage import assess_leakage_risk, iluc_contribution, requires_iluc_assessment
from ..repositories import LeakageAssessmentRepository, provide
from .. import models, schemas

router = APIRouter(prefix="/api/leakage-assessments", tags=["leakage"])


@router.post("", response_model=schemas.LeakageAssessmentOut)
def create_assessment(assessment: schemas.LeakageAssessmentCreate, db: Session = Depends(get_db)):
    if not db.get(models.Facility, assessment.facility_id):
        raise HTTPException(status_code=404, detail="Facility not found")
    db_assessment = models.LeakageAssessment(**assessment.model_dump())
    db.add(db_assessment)
    db.commit()
    db.refresh(db_assessment)
    return db_assessment


@router.get("", response_model=list[schemas.LeakageAssessmentOut])
def list_assessments(
    facility_id: UUID | None = None,
    assessments: LeakageAssessmentRepository = Depends(provide(LeakageAssessmentRepository)),
):
    return assessments.for_facility(facility_id)


@router.post("/iluc-estimate", response_model=schemas.IlucEstimateOut)
def estimate_iluc(payload: schemas.IlucEstimateRequest):
    """iLUC contribution for a feedstock lot, optionally flagging whether one is required."""

    required = None
    if payload.puro_category is not None:
        required = requires_iluc_assessment(payload.puro_category, payload.dedicated_crop)
    return schemas.IlucEstimateOut(
        iluc_kg=iluc_contribution(
            payload.quantity_dry_tonnes,
            payload.lower_heating_value_gj,
            payload.iluc_factor_kg_per_mj,
            payload.attribution_factor,
        ),
        assessment_required=required,
    )


@router.post("/risk-screen", response_model=schemas.LeakageRiskOut)
def screen_leakage_risk(payload: schemas.LeakageRiskRequest):
    risk = assess_leakage_risk(payload.puro_category, payload.dedicated_crop, payload.has_existing_use)
    return schemas.LeakageRiskOut(
        risk_level=risk.risk_level,
        requires_iluc=risk.requires_iluc,
        mitigation_required=risk.mitigation_required,
        notes=list(risk.notes),
    )
