"""
Request body schemas for the parking API.

Bodies arrive with camelCase keys ("spaceNumber") and come out of
``model_dump()`` as the snake_case field names the store works with.
"""
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SpaceStatus = Literal['AVAILABLE', 'OCCUPIED', 'MAINTENANCE']
RequestStatus = Literal['PENDING', 'MATCHED', 'EXPIRED', 'CANCELLED']


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              str_strip_whitespace=True)


def _check_date_range(model):
    if model.start_date is not None and model.end_date is not None:
        if model.end_date <= model.start_date:
            raise ValueError("End date must be after start date")
    return model


# ---------- Parking spaces ----------

class ParkingSpaceIn(ApiModel):
    space_number: str = Field(min_length=1)
    area: str = Field(min_length=1)
    status: SpaceStatus = 'AVAILABLE'
    notes: Optional[str] = None


class ParkingSpaceUpdate(ApiModel):
    space_number: Optional[str] = Field(default=None, min_length=1)
    area: Optional[str] = Field(default=None, min_length=1)
    status: Optional[SpaceStatus] = None
    notes: Optional[str] = None


# ---------- Households ----------

class HouseholdIn(ApiModel):
    household_number: str = Field(min_length=1)
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None


class HouseholdUpdate(ApiModel):
    household_number: Optional[str] = Field(default=None, min_length=1)
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None


# ---------- Rentals ----------

class RentalIn(ApiModel):
    parking_space_id: int
    household_id: int
    license_plate: str = Field(min_length=1)
    start_date: date
    end_date: date
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        return _check_date_range(self)


class RentalUpdate(ApiModel):
    # space, household and isActive only change through create/end
    license_plate: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        return _check_date_range(self)


# ---------- Rental requests & offers ----------

class RentalRequestIn(ApiModel):
    name: str = Field(min_length=1)
    contact: str = Field(min_length=1)
    license_plate: str = Field(min_length=1)
    start_date: date
    end_date: date
    notes: Optional[str] = None

    @model_validator(mode='after')
    def check_dates(self):
        return _check_date_range(self)


class RequestStatusIn(ApiModel):
    status: RequestStatus


class ParkingOfferIn(ApiModel):
    space_number: str = Field(min_length=1)
    owner_name: str = Field(min_length=1)
    owner_contact: str = Field(min_length=1)
    notes: Optional[str] = None
