from pydantic import BaseModel, ConfigDict, Field, field_serializer
from datetime import datetime
from decimal import Decimal
from typing import Union


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="Store-assigned account identifier")
    nombre: str = Field(..., description="Account owner name")
    cantidad: Decimal = Field(..., description="Account balance")

    @field_serializer("cantidad", when_used="json")
    def serialize_cantidad(self, v: Decimal) -> Union[int, float]:
        # Whole amounts stay exact at any size
        if v == v.to_integral_value():
            return int(v)
        return float(v)


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Error description")
    error_code: str = Field(..., description="Machine-readable error code")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthResponse(BaseModel):
    status: str = Field(..., description="Service health status")
    timestamp: datetime = Field(default_factory=datetime.now)
    accounts_count: int = Field(..., description="Number of accounts in system")
