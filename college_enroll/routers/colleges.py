from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from college_enroll.core.deps import get_db
from college_enroll.core.errors import DuplicateEntryError
from college_enroll.models.college import College
from college_enroll.schemas.college import CollegeCreate, CollegeRead

router = APIRouter()


@router.post("", response_model=CollegeRead, status_code=status.HTTP_201_CREATED)
def create_college(payload: CollegeCreate, db: Session = Depends(get_db)):
    college = College(name=payload.name, code=payload.code)
    db.add(college)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEntryError("College", "code")

    db.refresh(college)
    return college


@router.get("", response_model=list[CollegeRead])
def list_colleges(db: Session = Depends(get_db)):
    return db.query(College).order_by(College.code.asc()).all()
