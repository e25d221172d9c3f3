from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

BoletoStatus = Literal["aguardando_pagamento", "pago", "vencido"]


class BoletoCreate(BaseModel):
    transporter_id: int
    request_id: Optional[int] = None
    cpf_cnpj: Optional[str] = None
    boleto_number: str = Field(min_length=1, max_length=64)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    issue_date: date
    due_date: date
    status: BoletoStatus = "aguardando_pagamento"
    boleto_url: Optional[str] = None
    invoice_url: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.due_date < self.issue_date:
            raise ValueError("Vencimento deve ser posterior à emissão")
        return self


class BoletoUpdate(BaseModel):
    boleto_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[BoletoStatus] = None
    boleto_url: Optional[str] = None
    invoice_url: Optional[str] = None
    notes: Optional[str] = None


class BoletoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    transporter_id: int
    request_id: Optional[int] = None
    transporter_name: str
    cpf_cnpj: str
    boleto_number: str
    amount: Decimal
    issue_date: date
    due_date: date
    status: str
    boleto_url: Optional[str] = None
    invoice_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
