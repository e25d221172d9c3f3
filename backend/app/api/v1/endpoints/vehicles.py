from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.models.vehicle import Vehicle
from app.schemas.vehicle import VehicleCreate, VehicleOut, VehicleUpdate
from app.services.licences.utils import normalize_plate

router = APIRouter()


def _get_vehicle(db: Session, vehicle_id: int, user: User) -> Vehicle:
    vehicle = db.get(Vehicle, vehicle_id)
    if not vehicle or (not user.is_staff and vehicle.user_id != user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vehicle not found",
        )
    return vehicle


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Plate already registered",
        )


@router.post("", response_model=VehicleOut)
def create_vehicle(
    payload: VehicleCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> VehicleOut:
    data = payload.model_dump()
    data["plate"] = normalize_plate(data["plate"])
    vehicle = Vehicle(user_id=user.id, **data)
    db.add(vehicle)
    _commit(db)
    db.refresh(vehicle)
    return VehicleOut.model_validate(vehicle)


@router.get("", response_model=list[VehicleOut])
def list_vehicles(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    plate: str | None = Query(default=None),
    type: str | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> list[VehicleOut]:
    query = db.query(Vehicle)
    if not user.is_staff:
        query = query.filter(Vehicle.user_id == user.id)
    if plate:
        query = query.filter(Vehicle.plate.contains(normalize_plate(plate)))
    if type:
        query = query.filter(Vehicle.type == type)
    vehicles = query.order_by(Vehicle.plate).offset(offset).limit(limit).all()
    return [VehicleOut.model_validate(vehicle) for vehicle in vehicles]


@router.get("/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> VehicleOut:
    return VehicleOut.model_validate(_get_vehicle(db, vehicle_id, user))


@router.patch("/{vehicle_id}", response_model=VehicleOut)
def update_vehicle(
    vehicle_id: int,
    payload: VehicleUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> VehicleOut:
    vehicle = _get_vehicle(db, vehicle_id, user)
    data = payload.model_dump(exclude_unset=True)
    if data.get("plate"):
        data["plate"] = normalize_plate(data["plate"])
    for key, value in data.items():
        setattr(vehicle, key, value)
    _commit(db)
    db.refresh(vehicle)
    return VehicleOut.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vehicle(
    vehicle_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> None:
    vehicle = _get_vehicle(db, vehicle_id, user)
    db.delete(vehicle)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Vehicle is referenced by a licence",
        )
