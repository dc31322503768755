from pydantic import BaseModel, Field


class InvoiceItemIn(BaseModel):
    description: str = ""
    quantity: int = Field(1, ge=1)
    unitPrice: float = Field(0, ge=0, allow_inf_nan=False)
    total: float | None = Field(None, ge=0, allow_inf_nan=False)


class GenerateInvoiceIn(BaseModel):
    customerName: str | None = None
    customerEmail: str | None = None
    customerAddress: str | None = None
    items: list[InvoiceItemIn] = []
    date: str | None = None
