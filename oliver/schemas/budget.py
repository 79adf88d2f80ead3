from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class BudgetBase(BaseModel):
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    device_model: Optional[str] = None
    device_type: Optional[str] = None
    issue: Optional[str] = None
    total_price: int = Field(0, ge=0, description="Total in centavos")
    installments: int = Field(1, ge=1)
    notes: Optional[str] = None


class BudgetPartCreate(BaseModel):
    name: str
    quantity: int = Field(1, ge=1)
    price: int = Field(0, ge=0, description="Unit price in centavos")
    warranty_months: Optional[int] = Field(None, ge=0)


class BudgetPartResponse(BudgetPartCreate):
    id: str
    budget_id: str

    class Config:
        from_attributes = True


class BudgetCreate(BudgetBase):
    parts: list[BudgetPartCreate] = []


class BudgetUpdate(BaseModel):
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    device_model: Optional[str] = None
    device_type: Optional[str] = None
    issue: Optional[str] = None
    total_price: Optional[int] = Field(None, ge=0)
    installments: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None


class BudgetResponse(BudgetBase):
    id: str
    owner_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BudgetSnapshot(BaseModel):
    """
    Denormalized copy of a budget stored on its deletion audit record.

    Audit payloads are JSON written by the database, so they are parsed
    through this model before use instead of being read as raw dicts.
    """
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    owner_id: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    device_model: Optional[str] = None
    device_type: Optional[str] = None
    issue: Optional[str] = None
    total_price: int = 0
    installments: int = 1
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
